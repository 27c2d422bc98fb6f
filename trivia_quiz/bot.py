import asyncio
import logging
import os
from typing import Optional

import discord
from discord.ext import commands

from .config_manager import ConfigManager
from .events import QuizEvent, Tick
from .models import QuizStatus, SessionState
from .question_source import QuestionSource
from .quiz_controller import QuizController
from .quiz_engine import QuizTimer
from .rendering import (
    RESTART_ID,
    START_ID,
    QuizView,
    format_time,
    parse_advance_id,
    parse_answer_id,
    render,
)

logger = logging.getLogger(__name__)

BUTTON_STYLES = {
    "primary": discord.ButtonStyle.primary,
    "secondary": discord.ButtonStyle.secondary,
    "success": discord.ButtonStyle.success,
    "danger": discord.ButtonStyle.danger,
}


def build_embed(view: QuizView) -> discord.Embed:
    """Translate a rendered quiz view into a Discord embed."""
    embed = discord.Embed(title=view.title, description=view.description, color=view.color)
    for name, value in view.fields:
        embed.add_field(name=name, value=value, inline=False)
    if view.footer:
        embed.set_footer(text=view.footer)
    return embed


class QuizPanel(discord.ui.View):
    """Buttons for one rendered quiz screen."""

    def __init__(self, bot: "QuizBot", quiz_view: QuizView):
        super().__init__(timeout=None)
        self.bot = bot
        for spec in quiz_view.buttons:
            button = discord.ui.Button(
                custom_id=spec.custom_id,
                label=spec.label,
                style=BUTTON_STYLES.get(spec.style, discord.ButtonStyle.secondary),
                disabled=spec.disabled,
                row=spec.row
            )
            button.callback = self._make_callback(spec.custom_id)
            self.add_item(button)

    def _make_callback(self, custom_id: str):
        async def callback(interaction: discord.Interaction):
            await self.bot.handle_button(interaction, custom_id)
        return callback


class QuizBot(commands.Bot):
    """Discord bot hosting a single trivia quiz session"""

    def __init__(self, config=None, config_manager: Optional[ConfigManager] = None):
        intents = discord.Intents.none()
        intents.guilds = True  # Required for slash commands

        command_prefix = '!'
        if config and 'bot' in config:
            command_prefix = config['bot'].get('command_prefix', '!')

        super().__init__(
            command_prefix=command_prefix,
            intents=intents,
            help_command=None
        )

        self.app_config = config or {}
        self.config_manager = config_manager or ConfigManager()
        if self.app_config:
            for error in self.config_manager.apply_config(self.app_config):
                logger.error(f"Invalid configuration value, default kept: {error}")

        settings = self.config_manager.get_quiz_settings()
        self.quiz_controller = QuizController(
            timer=QuizTimer(interval=settings.tick_interval),
            seconds_per_question=settings.seconds_per_question
        )
        self.quiz_controller.subscribe(self.on_quiz_state_changed)
        self.panel_message: Optional[discord.Message] = None
        self._refresh_tasks = set()

    async def setup_hook(self):
        """Called when the bot is starting up"""
        try:
            logger.info("Setting up bot components...")
            await self.load_questions()
            await self.setup_commands()
            logger.info("Bot setup completed successfully")
        except Exception as e:
            logger.error(f"Error during bot setup: {e}")
            raise

    async def load_questions(self) -> SessionState:
        """Fetch the question set once; failures leave the quiz in Error status."""
        settings = self.config_manager.get_quiz_settings()
        source = QuestionSource(settings.questions_url, timeout=settings.request_timeout)
        state = await self.quiz_controller.load_questions(source)
        if state.status == QuizStatus.ERROR:
            logger.error("Questions could not be loaded; the quiz will show an error screen")
        return state

    async def setup_commands(self):
        """Register all slash commands"""
        @self.tree.command(name="quiz", description="Show the trivia quiz panel")
        async def quiz_command(interaction: discord.Interaction):
            await self.handle_quiz(interaction)

        @self.tree.command(name="status", description="Show the current quiz status")
        async def status_command(interaction: discord.Interaction):
            await self.handle_status(interaction)

        synced = await self.tree.sync()
        logger.info(f"Synced {len(synced)} slash commands")

    def render_panel(self):
        """Embed and buttons for the current state."""
        quiz_view = render(self.quiz_controller.state)
        return build_embed(quiz_view), QuizPanel(self, quiz_view)

    async def handle_quiz(self, interaction: discord.Interaction):
        """Handle /quiz: post a fresh panel and make it the one kept up to date"""
        try:
            embed, panel = self.render_panel()
            await interaction.response.send_message(embed=embed, view=panel)
            self.panel_message = await interaction.original_response()
        except discord.HTTPException as e:
            logger.error(f"Failed to post quiz panel: {e}")

    async def handle_status(self, interaction: discord.Interaction):
        """Handle /status command"""
        summary = self.quiz_controller.get_session_summary()
        embed = discord.Embed(title="📊 Quiz Status", color=0x6699ff)
        embed.add_field(name="Status", value=summary['status'].capitalize(), inline=True)
        embed.add_field(
            name="Question",
            value=f"{summary['current_question']}/{summary['total_questions']}",
            inline=True
        )
        embed.add_field(
            name="Points",
            value=f"{summary['score']}/{summary['max_possible_points']}",
            inline=True
        )
        embed.add_field(name="Highscore", value=str(summary['high_score']), inline=True)
        if summary['seconds_remaining'] is not None:
            embed.add_field(name="Time left", value=format_time(summary['seconds_remaining']), inline=True)
        try:
            await interaction.response.send_message(embed=embed, ephemeral=True)
        except discord.HTTPException as e:
            logger.error(f"Failed to send status: {e}")

    def apply_button(self, custom_id: str) -> SessionState:
        """Translate a button press into a controller operation."""
        controller = self.quiz_controller
        if custom_id == START_ID:
            return controller.start()
        if custom_id == RESTART_ID:
            return controller.restart()

        question_index = parse_advance_id(custom_id)
        if question_index is not None:
            if self._is_stale(custom_id, question_index):
                return controller.state
            return controller.advance()

        answer = parse_answer_id(custom_id)
        if answer is not None:
            question_index, option_index = answer
            if self._is_stale(custom_id, question_index):
                return controller.state
            return controller.answer(option_index)

        logger.warning(f"Unknown button id: {custom_id}")
        return controller.state

    def _is_stale(self, custom_id: str, question_index: int) -> bool:
        """A press from a panel drawn for another question must not touch the current one."""
        state = self.quiz_controller.state
        if state.status == QuizStatus.ACTIVE and question_index == state.current_index:
            return False
        logger.warning(
            f"Ignoring button {custom_id} from a stale panel "
            f"(status {state.status.value}, current question {state.current_index})"
        )
        return True

    async def handle_button(self, interaction: discord.Interaction, custom_id: str):
        """Apply a button press and redraw the panel it came from"""
        self.apply_button(custom_id)
        embed, panel = self.render_panel()
        try:
            await interaction.response.edit_message(embed=embed, view=panel)
            self.panel_message = interaction.message or self.panel_message
        except discord.HTTPException as e:
            logger.error(f"Failed to update quiz panel: {e}")

    def should_refresh(self, previous: SessionState, current: SessionState, event: QuizEvent) -> bool:
        """Only timer-driven changes need a refresh; button presses redraw through their interaction."""
        if not isinstance(event, Tick):
            return False
        if previous.status != current.status:
            return True
        refresh = self.config_manager.get_quiz_settings().timer_refresh_seconds
        return current.seconds_remaining is not None and current.seconds_remaining % refresh == 0

    def on_quiz_state_changed(self, previous: SessionState, current: SessionState, event: QuizEvent) -> None:
        if self.panel_message is None or not self.should_refresh(previous, current, event):
            return
        task = asyncio.create_task(self.refresh_panel())
        self._refresh_tasks.add(task)
        task.add_done_callback(self._refresh_tasks.discard)

    async def refresh_panel(self):
        """Redraw the last posted panel from the current state"""
        if self.panel_message is None:
            return
        embed, panel = self.render_panel()
        try:
            await self.panel_message.edit(embed=embed, view=panel)
        except discord.NotFound:
            logger.info("Quiz panel message was deleted; waiting for a new /quiz")
            self.panel_message = None
        except discord.HTTPException as e:
            logger.error(f"Failed to refresh quiz panel: {e}")

    async def on_ready(self):
        logger.info(f"Logged in as {self.user} ({len(self.guilds)} guilds)")

    async def close(self):
        await self.quiz_controller.shutdown()
        await super().close()


async def run_bot(token=None, config=None):
    """Run the bot with proper error handling"""
    if not token:
        token = os.getenv('DISCORD_BOT_TOKEN')

    if not token:
        logger.error("No Discord bot token provided")
        return

    bot = QuizBot(config)

    try:
        logger.info("Starting trivia quiz bot...")
        await bot.start(token)
    except discord.LoginFailure:
        logger.error("Invalid bot token provided")
    except discord.HTTPException as e:
        logger.error(f"HTTP error occurred: {e}")
    finally:
        if not bot.is_closed():
            await bot.close()
