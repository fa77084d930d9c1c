"""
Rune Relic Bot - Discord front end for the rune collecting game
Main entry point: slash commands, per-user engines and the health endpoint
"""
import logging
import os
import threading
from typing import Optional

import discord
from discord import app_commands
from discord.ext import commands, tasks
from flask import Flask

from src.database.connection import db_manager
from src.database.profile_repository import ProfileRepository
from src.database.setup import db_setup
from src.rune_game.boss_library import get_todays_boss
from src.rune_game.config import EngineConfig
from src.rune_game.engine_cache import EngineCache
from src.rune_game.game_engine import GameEngine
from src.rune_game.game_ui import (
    BattleView, CollectionView, EncounterView, create_battle_embed, create_profile_embed,
    describe_rune, format_duration,
)
from src.rune_game.rune_library import rune_library

logging.basicConfig(level=logging.INFO, format='%(asctime)s %(levelname)s %(name)s: %(message)s')
logger = logging.getLogger('rune_relic')

# Bot setup
intents = discord.Intents.default()
bot = commands.Bot(command_prefix='!', intents=intents, help_command=None)

profile_repository = ProfileRepository(db_manager)
engine_config = EngineConfig()

# One live engine per active user, ephemeral sessions live only here
engine_cache = EngineCache(lambda user_id, engine: profile_repository.save_profile(user_id, engine.profile))


def load_engine(user: discord.abc.User) -> GameEngine:
    """Build an engine from the stored profile, creating a profile only for new players"""
    # load_profile raises on database errors, only a missing row means a new player
    profile = profile_repository.load_profile(user.id)
    created = profile is None
    if created:
        profile = GameEngine.new_profile(user.display_name, discord.utils.utcnow(), config=engine_config)
        logger.info("[PROFILE] Created profile for %s (%s)", user.display_name, user.id)

    engine = GameEngine(profile, config=engine_config, clock=discord.utils.utcnow)
    if created:
        profile_repository.save_profile(user.id, profile)
    return engine


def get_engine(user: discord.abc.User) -> GameEngine:
    """Get the user's engine, loading or creating their profile"""
    return engine_cache.get(user.id, discord.utils.utcnow(), lambda: load_engine(user))


def save_engine(user_id: int):
    """Persist the user's profile after a mutating command or button press"""
    engine_cache.touch(user_id, discord.utils.utcnow())
    engine_cache.save(user_id)


def reload_config():
    """Reload engine tunables; engines without a live session are dropped so they pick them up"""
    global engine_config
    engine_config = EngineConfig.from_database(db_manager)
    engine_cache.evict_inactive()


@tasks.loop(minutes=5)
async def evict_idle_engines():
    engine_cache.evict_idle(discord.utils.utcnow())


async def send_error(interaction: discord.Interaction, message: str):
    """Answer with an ephemeral error whether or not the interaction was already answered"""
    if not interaction.response.is_done():
        await interaction.response.send_message(f"❌ {message}", ephemeral=True)
    else:
        await interaction.followup.send(f"❌ {message}", ephemeral=True)


def is_staff(interaction: discord.Interaction) -> bool:
    """Staff role or server owner"""
    if not interaction.guild:
        return False
    if interaction.guild.owner_id == interaction.user.id:
        return True
    roles = getattr(interaction.user, 'roles', [])
    return any(role.name == 'Staff' for role in roles)


# Bot Events
@bot.event
async def on_ready():
    logger.info("[BOT_STARTUP] %s has connected to Discord!", bot.user)

    try:
        db_setup.initialize_database()
        reload_config()
    except Exception:
        logger.exception("[BOT_STARTUP] Database initialization failed")

    try:
        synced = await bot.tree.sync()
        logger.info("[BOT_STARTUP] Synced %s slash command(s)", len(synced))
    except Exception:
        logger.exception("[BOT_STARTUP] Failed to sync slash commands")

    if not evict_idle_engines.is_running():
        evict_idle_engines.start()


@bot.tree.command(name='profile', description='View your sage, energy and progress')
async def profile_slash(interaction: discord.Interaction):
    try:
        engine = get_engine(interaction.user)
        engine.refresh()
        save_engine(interaction.user.id)
        await interaction.response.send_message(embed=create_profile_embed(engine.get_profile_snapshot()))
    except Exception:
        logger.exception("[PROFILE] Error showing profile")
        await send_error(interaction, "Error loading your profile. Please try again.")


@bot.tree.command(name='encounter', description='Spend one energy to find wild runes')
async def encounter_slash(interaction: discord.Interaction):
    try:
        engine = get_engine(interaction.user)
        # A new encounter replaces any unfinished one
        engine.clear_encounter()

        cards = engine.start_encounter()
        save_engine(interaction.user.id)

        if not cards:
            wait = engine.ledger.time_until_next_energy(engine.clock())
            await interaction.response.send_message(
                f"⚡ You are out of energy! Next energy in **{format_duration(wait)}**.", ephemeral=True)
            return

        view = EncounterView(interaction.user.id, engine, lambda: save_engine(interaction.user.id), cards)
        await interaction.response.send_message(embed=view.create_embed(), view=view)
    except Exception:
        logger.exception("[ENCOUNTER] Error starting encounter")
        await send_error(interaction, "Error starting encounter. Please try again.")


@bot.tree.command(name='collection', description='Browse your runes')
async def collection_slash(interaction: discord.Interaction):
    try:
        engine = get_engine(interaction.user)
        runes = engine.get_collection_snapshot()

        if not runes:
            embed = discord.Embed(
                title="📚 Your Rune Collection",
                description="Your collection is empty! Use `/encounter` to find your first runes.",
                color=0x95a5a6
            )
            await interaction.response.send_message(embed=embed)
            return

        view = CollectionView(interaction.user.id, runes, engine.collection.get_collection_stats())
        await interaction.response.send_message(embed=view.create_embed(), view=view)
    except Exception:
        logger.exception("[COLLECTION] Error showing collection")
        await send_error(interaction, "Error loading your collection. Please try again.")


@bot.tree.command(name='dex', description='See which runes you have seen and caught')
async def dex_slash(interaction: discord.Interaction):
    try:
        engine = get_engine(interaction.user)
        dex = engine.get_dex_snapshot()

        embed = discord.Embed(
            title="📖 Rune Dex",
            description=f"Caught **{sum(1 for e in dex if e['caught'])}** • "
                        f"Seen **{sum(1 for e in dex if e['seen'])}** • Total **{len(dex)}**",
            color=0x00ffaa
        )
        for element, info in rune_library.elements.items():
            lines = []
            for entry in dex:
                if entry['element'] != element:
                    continue
                if entry['caught']:
                    lines.append(f"✅ #{entry['species_id']} {entry['name']}")
                elif entry['seen']:
                    lines.append(f"👁️ #{entry['species_id']} {entry['name']}")
                else:
                    lines.append(f"❔ #{entry['species_id']} ???")
            embed.add_field(name=f"{info['emoji']} {element.title()}", value="\n".join(lines), inline=True)

        await interaction.response.send_message(embed=embed)
    except Exception:
        logger.exception("[DEX] Error showing dex")
        await send_error(interaction, "Error loading the dex. Please try again.")


@bot.tree.command(name='release', description='Release a rune for a sage refund')
@app_commands.describe(rune_id='ID of the rune to release')
async def release_slash(interaction: discord.Interaction, rune_id: str):
    try:
        engine = get_engine(interaction.user)
        rune = engine.collection.get_rune(rune_id)
        if rune is None:
            await interaction.response.send_message("❌ You don't own a rune with that ID.", ephemeral=True)
            return

        description = describe_rune(rune)
        refund = engine.release_rune(rune_id)
        save_engine(interaction.user.id)

        embed = discord.Embed(title="🍃 Rune Released", description=description, color=0x95a5a6)
        embed.add_field(name="🌿 Refund", value=f"+{refund} sage", inline=True)
        await interaction.response.send_message(embed=embed)
    except Exception:
        logger.exception("[COLLECTION] Error releasing rune")
        await send_error(interaction, "Error releasing rune. Please try again.")


@bot.tree.command(name='fuse', description='Fuse two runes into a new one')
@app_commands.describe(rune_a='First rune ID', rune_b='Second rune ID')
async def fuse_slash(interaction: discord.Interaction, rune_a: str, rune_b: str):
    try:
        engine = get_engine(interaction.user)
        if not engine.fusion_candidates(rune_a, rune_b):
            await interaction.response.send_message("❌ You need two different runes you own to fuse.",
                                                    ephemeral=True)
            return

        rune = engine.fuse(rune_a, rune_b)
        if rune is None:
            await interaction.response.send_message(
                f"❌ Fusion costs **{engine_config.fusion_cost}** sage.", ephemeral=True)
            return

        save_engine(interaction.user.id)
        embed = discord.Embed(title="🌀 Fusion Complete!", description=describe_rune(rune),
                              color=rune_library.rarities[rune.rarity]['color'])
        embed.set_footer(text=f"-{engine_config.fusion_cost} sage")
        await interaction.response.send_message(embed=embed)
    except Exception:
        logger.exception("[FUSION] Error fusing runes")
        await send_error(interaction, "Error fusing runes. Please try again.")


@bot.tree.command(name='battle', description='Battle a wild team with three of your runes')
@app_commands.describe(rune1='First rune ID', rune2='Second rune ID', rune3='Third rune ID')
async def battle_slash(interaction: discord.Interaction, rune1: str, rune2: str, rune3: str):
    try:
        engine = get_engine(interaction.user)
        if engine.battles.active_session:
            engine.cancel_battle()

        session = engine.start_battle([rune1, rune2, rune3])
        if session is None:
            await interaction.response.send_message("❌ Pick three different runes you own.", ephemeral=True)
            return

        view = BattleView(interaction.user.id, engine, lambda: save_engine(interaction.user.id))
        await interaction.response.send_message(embed=view.create_embed(), view=view)
    except Exception:
        logger.exception("[BATTLE] Error starting battle")
        await send_error(interaction, "Error starting battle. Please try again.")


@bot.tree.command(name='boss', description="Challenge today's elemental boss")
@app_commands.describe(rune1='First rune ID (leave empty to see the boss)', rune2='Second rune ID',
                       rune3='Third rune ID')
async def boss_slash(interaction: discord.Interaction, rune1: Optional[str] = None,
                     rune2: Optional[str] = None, rune3: Optional[str] = None):
    try:
        engine = get_engine(interaction.user)
        engine.refresh()
        now = engine.clock()
        boss = get_todays_boss(now.date())

        if not (rune1 and rune2 and rune3):
            element = rune_library.elements[boss.element]
            embed = discord.Embed(
                title=f"👑 Today's Boss: {boss.name}",
                description=f"*{boss.title}*\n{boss.description}",
                color=element['color']
            )
            embed.add_field(name="🌿 Reward", value=f"{boss.reward_sage + boss.bonus_sage} sage + a rune",
                            inline=True)
            embed.add_field(name="👑 Boss Energy", value=str(engine.profile.boss_energy), inline=True)
            embed.add_field(name="⏰ Next Boss", value=format_duration(engine.daily.time_until_daily_reset(now)),
                            inline=True)
            if boss.boss_id in engine.profile.bosses_defeated:
                embed.set_footer(text="Already defeated once - no first clear bonus")
            await interaction.response.send_message(embed=embed)
            return

        encounter = engine.start_boss_fight([rune1, rune2, rune3])
        if encounter is None:
            if not engine.ledger.has_boss_energy():
                await interaction.response.send_message("❌ You already challenged today's boss. Come back tomorrow!",
                                                        ephemeral=True)
            else:
                await interaction.response.send_message("❌ Pick three different runes you own.", ephemeral=True)
            return

        save_engine(interaction.user.id)
        view = BattleView(interaction.user.id, engine, lambda: save_engine(interaction.user.id), boss=True)
        await interaction.response.send_message(embed=create_battle_embed(encounter, "👑 Boss Battle!"), view=view)
    except Exception:
        logger.exception("[BOSS] Error starting boss fight")
        await send_error(interaction, "Error starting boss fight. Please try again.")


@bot.tree.command(name='challenges', description="View today's challenges")
async def challenges_slash(interaction: discord.Interaction):
    try:
        engine = get_engine(interaction.user)
        engine.refresh()
        save_engine(interaction.user.id)
        snapshot = engine.get_challenges_snapshot()

        embed = discord.Embed(title="📅 Daily Challenges", color=0xffd700)
        for challenge in snapshot['challenges']:
            if challenge['claimed']:
                status = "🎁 Claimed"
            elif challenge['completed']:
                status = "✅ Complete - use `/claim`"
            else:
                status = f"{challenge['current']}/{challenge['target']}"
            embed.add_field(
                name=challenge['description'],
                value=f"{status} • 🌿 {challenge['reward']} sage",
                inline=False
            )

        streak_text = f"🔥 **{snapshot['daily_streak']}** day streak"
        if snapshot['next_milestone']:
            streak_text += f" • next milestone: {snapshot['next_milestone']} days"
        embed.add_field(name="Streak", value=streak_text, inline=False)
        embed.set_footer(text=f"Resets in {format_duration(snapshot['resets_in'])}")
        await interaction.response.send_message(embed=embed)
    except Exception:
        logger.exception("[DAILY] Error showing challenges")
        await send_error(interaction, "Error loading challenges. Please try again.")


@bot.tree.command(name='claim', description='Claim completed challenge rewards')
@app_commands.describe(challenge_id='Claim a single challenge (default: all completed)')
async def claim_slash(interaction: discord.Interaction, challenge_id: Optional[str] = None):
    try:
        engine = get_engine(interaction.user)
        if challenge_id:
            paid = engine.claim_challenge_reward(challenge_id)
        else:
            paid = engine.claim_all_challenge_rewards()

        if paid <= 0:
            await interaction.response.send_message("❌ Nothing to claim yet!", ephemeral=True)
            return

        save_engine(interaction.user.id)
        await interaction.response.send_message(f"🎁 Claimed **{paid}** sage!")
    except Exception:
        logger.exception("[DAILY] Error claiming rewards")
        await send_error(interaction, "Error claiming rewards. Please try again.")


@bot.tree.command(name='streak', description='Claim your streak reward once all challenges are done')
async def streak_slash(interaction: discord.Interaction):
    try:
        engine = get_engine(interaction.user)
        reward = engine.claim_streak_reward()

        if reward is None:
            await interaction.response.send_message(
                "❌ No streak reward available. Complete all three challenges first!", ephemeral=True)
            return

        save_engine(interaction.user.id)
        embed = discord.Embed(title=f"🔥 {reward['description']}", color=0xff9800)
        embed.add_field(name="🌿 Sage", value=f"+{reward['sage']}", inline=True)
        if reward.get('energy'):
            embed.add_field(name="⚡ Energy", value=f"+{reward['energy']}", inline=True)
        await interaction.response.send_message(embed=embed)
    except Exception:
        logger.exception("[DAILY] Error claiming streak reward")
        await send_error(interaction, "Error claiming streak reward. Please try again.")


@bot.tree.command(name='leaderboard', description='Top players by battle wins')
async def leaderboard_slash(interaction: discord.Interaction):
    try:
        top_players = profile_repository.list_leaderboard(10)
        if not top_players:
            await interaction.response.send_message("🏆 No players yet! Use `/encounter` to start playing.")
            return

        medals = {1: "🥇", 2: "🥈", 3: "🥉"}
        lines = []
        for rank, (user_id, username, wins, losses, sage) in enumerate(top_players, start=1):
            lines.append(f"{medals.get(rank, f'**{rank}.**')} **{username}** • "
                         f"{wins} wins / {losses} losses • 🌿 {sage:,}")

        embed = discord.Embed(title="🏆 Rune Relic Leaderboard", description="\n".join(lines), color=0xffd700)
        await interaction.response.send_message(embed=embed)
    except Exception:
        logger.exception("[LEADERBOARD] Error loading leaderboard")
        await send_error(interaction, "Error loading leaderboard. Please try again.")


@bot.tree.command(name='help', description='Show all available commands')
async def help_slash(interaction: discord.Interaction):
    embed = discord.Embed(
        title="🔮 Rune Relic Commands",
        description="Catch, fuse and battle elemental runes!",
        color=0x00ffaa
    )
    embed.add_field(
        name="🌫️ Collecting",
        value="🔹 `/encounter` - Spend energy to find wild runes\n🔹 `/collection` - Browse your runes\n"
              "🔹 `/dex` - Seen and caught species\n🔹 `/release <rune_id>` - Release a rune for sage\n"
              "🔹 `/fuse <rune_a> <rune_b>` - Fuse two runes",
        inline=False
    )
    embed.add_field(
        name="⚔️ Battles",
        value="🔹 `/battle <rune1> <rune2> <rune3>` - Fight a wild team\n"
              "🔹 `/boss [rune1 rune2 rune3]` - Today's elemental boss",
        inline=False
    )
    embed.add_field(
        name="📅 Daily",
        value="🔹 `/challenges` - Today's challenges\n🔹 `/claim [challenge_id]` - Claim challenge sage\n"
              "🔹 `/streak` - Claim your streak reward",
        inline=False
    )
    embed.add_field(
        name="ℹ️ Info",
        value="🔹 `/profile` - Your sage, energy and record\n🔹 `/leaderboard` - Top players\n"
              "🔹 `/help` - Show this help menu",
        inline=False
    )

    if is_staff(interaction):
        embed.add_field(
            name="🔧 Staff",
            value="🔹 `/set_config <key> <value>` - Change an engine setting\n"
                  "🔹 `/give_sage <user> <amount>` - Grant sage",
            inline=False
        )

    await interaction.response.send_message(embed=embed)


# Staff Commands
@bot.tree.command(name='set_config', description='Configure game settings (Staff only)')
@app_commands.default_permissions(administrator=True)
@app_commands.describe(key='Configuration key', value='Configuration value')
async def set_config_slash(interaction: discord.Interaction, key: str, value: str):
    try:
        if key not in EngineConfig().to_config_rows():
            await interaction.response.send_message(f"❌ Unknown configuration key `{key}`", ephemeral=True)
            return

        # Persist everyone before cached engines are dropped
        engine_cache.save_all()
        db_setup.set_config(key, value)
        reload_config()

        embed = discord.Embed(title="✅ Configuration Updated", color=0x00ff00)
        embed.add_field(name="Key", value=f"`{key}`", inline=True)
        embed.add_field(name="Value", value=f"`{value}`", inline=True)
        await interaction.response.send_message(embed=embed)
    except Exception:
        logger.exception("[CONFIG] Error updating config")
        await send_error(interaction, "Error updating config.")


@bot.tree.command(name='give_sage', description='Give sage to a user (Admin only)')
@app_commands.default_permissions(administrator=True)
@app_commands.describe(user='User to give sage to', amount='Amount of sage (default: 100)')
async def give_sage_slash(interaction: discord.Interaction, user: discord.Member, amount: int = 100):
    try:
        if amount <= 0:
            await interaction.response.send_message("❌ Amount must be positive.", ephemeral=True)
            return

        engine = get_engine(user)
        balance = engine.ledger.credit_sage(amount)
        save_engine(user.id)

        logger.info("[GIVE_SAGE] %s gave %s sage to %s", interaction.user.id, amount, user.id)
        await interaction.response.send_message(f"🌿 Gave **{amount}** sage to {user.mention} (balance {balance:,}).")
    except Exception:
        logger.exception("[GIVE_SAGE] Error giving sage")
        await send_error(interaction, "Error giving sage.")


# Flask web server for cloud hosting
app = Flask(__name__)


@app.route('/')
def home():
    return "Rune Relic is running! 🔮"


@app.route('/health')
def health():
    return {"status": "healthy", "bot": "online" if bot.is_ready() else "starting",
            "active_players": len(engine_cache)}


def run_flask():
    port = int(os.environ.get('PORT', 10000))
    app.run(host='0.0.0.0', port=port, debug=False, use_reloader=False)


if __name__ == '__main__':
    token = os.getenv('DISCORD_TOKEN')

    if not token:
        logger.error("[MAIN] Please set the DISCORD_TOKEN environment variable")
    else:
        # Health endpoint runs beside the bot for cloud hosting
        flask_thread = threading.Thread(target=run_flask)
        flask_thread.daemon = True
        flask_thread.start()
        logger.info("[MAIN] Flask server started")

        bot.run(token, log_handler=None)
