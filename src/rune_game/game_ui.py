"""
Game UI Components
Interactive Discord UI for encounters, catching, battles and the collection
"""
import logging
import random
from typing import Callable, Dict, Any, List, Optional

import discord

from .battle_system import BattleSession
from .boss_system import BossEncounter
from .encounter_system import EncounterCard
from .game_engine import GameEngine
from .rune_library import rune_library

logger = logging.getLogger(__name__)

RARITY_EMOJI = {'common': '⚪', 'rare': '🔵', 'epic': '🟣', 'legendary': '🟠'}
VARIANT_EMOJI = {'normal': '', 'shiny': ' ✨', 'corrupted': ' 🩸', 'purified': ' 🕊️'}


def format_duration(delta) -> str:
    """Render a timedelta as '1h 5m' / '4m 10s'"""
    if delta is None:
        return "Full"
    total = int(delta.total_seconds())
    hours, remainder = divmod(total, 3600)
    minutes, seconds = divmod(remainder, 60)
    if hours:
        return f"{hours}h {minutes}m"
    return f"{minutes}m {seconds}s"


def describe_rune(rune) -> str:
    """One-line rune summary for embeds"""
    species = rune_library.get_species(rune.species_id)
    element = rune_library.elements[species.element]
    return (f"{element['emoji']} **{rune.nickname or species.name}**{VARIANT_EMOJI.get(rune.variant, '')} "
            f"{RARITY_EMOJI.get(rune.rarity, '')} {rune.rarity.title()}\n"
            f"⚔️ {rune.stats.power} PWR • 🛡️ {rune.stats.guard} GRD • 💨 {rune.stats.speed} SPD • `{rune.rune_id}`")


def create_profile_embed(snapshot: Dict[str, Any]) -> discord.Embed:
    embed = discord.Embed(
        title=f"🔮 {snapshot['username']}'s Profile",
        color=0x00ffaa
    )
    embed.add_field(name="🌿 Sage", value=f"**{snapshot['sage']:,}**", inline=True)
    embed.add_field(
        name="⚡ Energy",
        value=f"**{snapshot['energy']}/{snapshot['max_energy']}**\nNext: {format_duration(snapshot['next_energy_in'])}",
        inline=True
    )
    embed.add_field(name="👑 Boss Energy", value=f"**{snapshot['boss_energy']}**", inline=True)
    embed.add_field(
        name="⚔️ Battle Record",
        value=f"**{snapshot['wins']}** wins • **{snapshot['losses']}** losses",
        inline=True
    )
    embed.add_field(name="🔥 Daily Streak", value=f"**{snapshot['daily_streak']}** days", inline=True)

    stats = snapshot['collection']
    embed.add_field(
        name="📚 Collection",
        value=f"📦 **{stats['total_runes']}** runes\n"
              f"📖 **{stats['caught_species']}/{stats['total_species']}** caught • "
              f"**{stats['seen_species']}** seen\n"
              f"💎 **{stats['rare_runes']}** rare+ runes",
        inline=False
    )
    if snapshot['bosses_defeated']:
        embed.add_field(name="🏆 Bosses Defeated", value=", ".join(snapshot['bosses_defeated']), inline=False)
    return embed


def create_battle_embed(session: BattleSession, title: str, show_enemy: bool = True) -> discord.Embed:
    """Battle state embed for regular and boss battles"""
    embed = discord.Embed(title=title, color=0xff6b35)

    if isinstance(session, BossEncounter) and session.boss:
        embed.description = f"**{session.boss.name}**, {session.boss.title}\n*{session.boss.description}*"

    embed.add_field(
        name="🛡️ Your Team",
        value="\n".join(describe_rune(rune) for rune in session.player_team),
        inline=False
    )
    if show_enemy:
        embed.add_field(
            name="👹 Opponent",
            value="\n".join(describe_rune(rune) for rune in session.enemy_team),
            inline=False
        )
    else:
        embed.add_field(name="👹 Opponent", value="❓ ❓ ❓", inline=False)

    if session.rounds:
        lines = []
        for result in session.rounds:
            marker = {'player': '✅', 'enemy': '❌', 'tie': '➖'}[result.winner]
            lines.append(f"{marker} Round {result.round_number}: "
                         f"{result.player_power:.1f} vs {result.enemy_power:.1f}")
        embed.add_field(
            name=f"📜 Rounds ({session.player_round_wins}-{session.enemy_round_wins})",
            value="\n".join(lines),
            inline=False
        )
    return embed


class EncounterView(discord.ui.View):
    """Pick one of three wild runes to attempt"""

    def __init__(self, user_id: int, engine: GameEngine, save: Callable[[], None], cards: List[EncounterCard]):
        super().__init__(timeout=300)  # 5 minute timeout
        self.user_id = user_id
        self.engine = engine
        self.save = save
        self.cards = cards

        for index, card in enumerate(cards):
            species = rune_library.get_species(card.species_id)
            button = discord.ui.Button(
                label=species.name,
                emoji=rune_library.elements[species.element]['emoji'],
                style=discord.ButtonStyle.primary,
                custom_id=f"encounter_card_{index}",
            )
            button.callback = self._make_callback(card)
            self.add_item(button)

        flee_button = discord.ui.Button(label="Walk Away", emoji='🚶', style=discord.ButtonStyle.secondary)
        flee_button.callback = self.walk_away
        self.add_item(flee_button)

    def create_embed(self) -> discord.Embed:
        embed = discord.Embed(
            title="🌫️ Wild Runes Appear!",
            description="Three runes drift out of the mist. Choose one to try and catch.",
            color=0x6b2d8b
        )
        for card in self.cards:
            species = rune_library.get_species(card.species_id)
            element = rune_library.elements[species.element]
            embed.add_field(
                name=f"{element['emoji']} {species.name}",
                value=f"{species.element.title()} • {species.trait}\n"
                      f"🎯 Difficulty {int(card.catch_difficulty * 100)}%",
                inline=True
            )
        embed.set_footer(text="Walking away does not refund energy")
        return embed

    def _make_callback(self, card: EncounterCard):
        async def callback(interaction: discord.Interaction):
            await self.choose(interaction, card)
        return callback

    async def choose(self, interaction: discord.Interaction, card: EncounterCard):
        if interaction.user.id != self.user_id:
            await interaction.response.send_message("❌ This encounter is not yours!", ephemeral=True)
            return

        if not self.engine.select_candidate(card):
            await interaction.response.send_message("❌ This encounter has expired.", ephemeral=True)
            return

        catch_view = CatchAttemptView(self.user_id, self.engine, self.save, card)
        await interaction.response.edit_message(embed=catch_view.create_embed(), view=catch_view)
        self.stop()

    async def walk_away(self, interaction: discord.Interaction):
        if interaction.user.id != self.user_id:
            await interaction.response.send_message("❌ This encounter is not yours!", ephemeral=True)
            return

        self.engine.clear_encounter()
        self.save()
        embed = discord.Embed(title="🚶 You walked away", description="The runes fade back into the mist.",
                              color=0x95a5a6)
        await interaction.response.edit_message(embed=embed, view=None)
        self.stop()


class CatchAttemptView(discord.ui.View):
    """Catch attempt for the selected card, the throw stands in for the minigame"""

    def __init__(self, user_id: int, engine: GameEngine, save: Callable[[], None], card: EncounterCard,
                 rng: Optional[random.Random] = None):
        super().__init__(timeout=300)
        self.user_id = user_id
        self.engine = engine
        self.save = save
        self.card = card
        self.rng = rng or random.Random()

    def create_embed(self) -> discord.Embed:
        species = rune_library.get_species(self.card.species_id)
        element = rune_library.elements[species.element]
        embed = discord.Embed(
            title=f"{element['emoji']} A wild {species.name}!",
            description=f"*{species.trait_description}*\n\nThrow your binding sigil to catch it.",
            color=element['color']
        )
        embed.add_field(name="🎯 Difficulty", value=f"{int(self.card.catch_difficulty * 100)}%", inline=True)
        return embed

    @discord.ui.button(label='Throw Sigil', emoji='🔮', style=discord.ButtonStyle.success)
    async def throw_sigil(self, interaction: discord.Interaction, button: discord.ui.Button):
        if interaction.user.id != self.user_id:
            await interaction.response.send_message("❌ This catch is not yours!", ephemeral=True)
            return

        score = self.rng.randint(0, 100)
        success = score >= self.card.catch_difficulty * 100
        rune = self.engine.resolve_catch(success, score)
        self.save()

        species = rune_library.get_species(self.card.species_id)
        if rune:
            embed = discord.Embed(title=f"🎉 Caught {species.name}!", description=describe_rune(rune),
                                  color=rune_library.rarities[rune.rarity]['color'])
        else:
            embed = discord.Embed(title=f"💨 {species.name} escaped!",
                                  description="Better luck next time. Use `/encounter` to try again.",
                                  color=0x95a5a6)
        embed.set_footer(text=f"Score: {score}")
        await interaction.response.edit_message(embed=embed, view=None)
        self.stop()

    @discord.ui.button(label='Let It Go', emoji='🍃', style=discord.ButtonStyle.secondary)
    async def let_go(self, interaction: discord.Interaction, button: discord.ui.Button):
        if interaction.user.id != self.user_id:
            await interaction.response.send_message("❌ This catch is not yours!", ephemeral=True)
            return

        self.engine.clear_encounter()
        self.save()
        embed = discord.Embed(title="🍃 Released", description="The rune drifts away.", color=0x95a5a6)
        await interaction.response.edit_message(embed=embed, view=None)
        self.stop()


class BattleView(discord.ui.View):
    """Reveal, fight or flee an active battle or boss fight"""

    def __init__(self, user_id: int, engine: GameEngine, save: Callable[[], None], boss: bool = False):
        super().__init__(timeout=600)  # 10 minute timeout
        self.user_id = user_id
        self.engine = engine
        self.save = save
        self.boss = boss

    @property
    def session(self) -> Optional[BattleSession]:
        if self.boss:
            return self.engine.bosses.active_encounter
        return self.engine.battles.active_session

    def create_embed(self, show_enemy: bool = False) -> discord.Embed:
        title = "👑 Boss Battle!" if self.boss else "⚔️ Battle!"
        return create_battle_embed(self.session, title, show_enemy=show_enemy or self.boss)

    @discord.ui.button(label='Reveal', emoji='👁️', style=discord.ButtonStyle.secondary)
    async def reveal(self, interaction: discord.Interaction, button: discord.ui.Button):
        if interaction.user.id != self.user_id:
            await interaction.response.send_message("❌ This battle is not yours!", ephemeral=True)
            return

        if not self.boss:
            self.engine.reveal_battle()
        button.disabled = True
        if self.session is None:
            await interaction.response.edit_message(content="This battle has ended.", embed=None, view=None)
            return
        await interaction.response.edit_message(embed=self.create_embed(show_enemy=True), view=self)

    @discord.ui.button(label='Fight', emoji='⚔️', style=discord.ButtonStyle.danger)
    async def fight(self, interaction: discord.Interaction, button: discord.ui.Button):
        if interaction.user.id != self.user_id:
            await interaction.response.send_message("❌ This battle is not yours!", ephemeral=True)
            return

        if self.boss:
            session = self.engine.resolve_boss_fight()
            result = self.engine.complete_boss_fight() if session else None
        else:
            session = self.engine.resolve_battle()
            result = self.engine.end_battle() if session else None

        if session is None or result is None:
            await interaction.response.edit_message(content="This battle has ended.", embed=None, view=None)
            self.stop()
            return

        self.save()
        title = "🏆 Victory!" if result['won'] else "💀 Defeat"
        embed = create_battle_embed(session, title)
        embed.add_field(name="🌿 Sage", value=f"+{result['sage']}", inline=True)
        if result.get('first_clear'):
            embed.add_field(name="🌟 First Clear", value="Bonus sage awarded!", inline=True)
        if result.get('reward_rune'):
            embed.add_field(name="🎁 Reward Rune", value=describe_rune(result['reward_rune']), inline=False)

        logger.info("[BATTLE] User %s %s (%s)", self.user_id, 'won' if result['won'] else 'lost',
                    'boss' if self.boss else 'battle')
        await interaction.response.edit_message(embed=embed, view=None)
        self.stop()

    @discord.ui.button(label='Flee', emoji='🏃', style=discord.ButtonStyle.secondary)
    async def flee(self, interaction: discord.Interaction, button: discord.ui.Button):
        if interaction.user.id != self.user_id:
            await interaction.response.send_message("❌ This battle is not yours!", ephemeral=True)
            return

        if self.boss:
            self.engine.cancel_boss_fight()
        else:
            self.engine.cancel_battle()
        self.save()

        embed = discord.Embed(title="🏃 You fled", description="No rewards this time.", color=0x95a5a6)
        await interaction.response.edit_message(embed=embed, view=None)
        self.stop()


class CollectionView(discord.ui.View):
    """Paged view of a player's runes"""

    def __init__(self, user_id: int, runes: List[Dict[str, Any]], stats: Dict[str, int]):
        super().__init__(timeout=300)  # 5 minute timeout
        self.user_id = user_id
        self.runes = runes
        self.stats = stats
        self.current_page = 1
        self.runes_per_page = 5
        self.total_pages = max(1, (len(runes) + self.runes_per_page - 1) // self.runes_per_page)

        self.update_buttons()

    def update_buttons(self):
        self.first_page.disabled = (self.current_page == 1)
        self.prev_page.disabled = (self.current_page == 1)
        self.next_page.disabled = (self.current_page == self.total_pages)
        self.last_page.disabled = (self.current_page == self.total_pages)

    def create_embed(self) -> discord.Embed:
        start_idx = (self.current_page - 1) * self.runes_per_page
        page_runes = self.runes[start_idx:start_idx + self.runes_per_page]

        embed = discord.Embed(
            title="📚 Your Rune Collection",
            description=f"**Page {self.current_page}/{self.total_pages}** • "
                        f"Showing {len(page_runes)} of {len(self.runes)} runes",
            color=0x3498db
        )
        embed.add_field(
            name="📊 Collection Stats",
            value=f"📦 **{self.stats['total_runes']}** runes\n"
                  f"🎴 **{self.stats['unique_species']}** species\n"
                  f"💎 **{self.stats['rare_runes']}** rare+ runes",
            inline=True
        )

        for rune in page_runes:
            element = rune_library.elements[rune['element']]
            embed.add_field(
                name=f"{element['emoji']} {rune['name']}{VARIANT_EMOJI.get(rune['variant'], '')}",
                value=f"{RARITY_EMOJI.get(rune['rarity'], '')} {rune['rarity'].title()} • 🏆 {rune['wins']} wins\n"
                      f"⚔️ {rune['power']} • 🛡️ {rune['guard']} • 💨 {rune['speed']}\n"
                      f"`{rune['rune_id']}`",
                inline=False
            )

        embed.set_footer(text="Use /battle with three rune IDs • /release or /fuse to manage runes")
        return embed

    async def _turn_page(self, interaction: discord.Interaction, page: int):
        if interaction.user.id != self.user_id:
            await interaction.response.send_message("❌ You can only navigate your own collection!", ephemeral=True)
            return

        self.current_page = page
        self.update_buttons()
        await interaction.response.edit_message(embed=self.create_embed(), view=self)

    @discord.ui.button(label='⏪', style=discord.ButtonStyle.secondary)
    async def first_page(self, interaction: discord.Interaction, button: discord.ui.Button):
        await self._turn_page(interaction, 1)

    @discord.ui.button(label='◀️', style=discord.ButtonStyle.primary)
    async def prev_page(self, interaction: discord.Interaction, button: discord.ui.Button):
        await self._turn_page(interaction, max(1, self.current_page - 1))

    @discord.ui.button(label='▶️', style=discord.ButtonStyle.primary)
    async def next_page(self, interaction: discord.Interaction, button: discord.ui.Button):
        await self._turn_page(interaction, min(self.total_pages, self.current_page + 1))

    @discord.ui.button(label='⏩', style=discord.ButtonStyle.secondary)
    async def last_page(self, interaction: discord.Interaction, button: discord.ui.Button):
        await self._turn_page(interaction, self.total_pages)
