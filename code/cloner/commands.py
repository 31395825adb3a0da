# =============================================================================
#  Clonecord
#  Copyright (C) 2025 github.com/Copycord
#
#  This source code is released under the GNU Affero General Public License
#  version 3.0. A copy of the license is available at:
#  https://www.gnu.org/licenses/agpl-3.0.en.html
# =============================================================================


import asyncio
import logging
from collections import deque
from datetime import datetime, timezone

import discord
from discord import Option
from discord.ext import commands
from discord import errors as discord_errors

from common.common_helpers import resolve_clone_options
from common.config import Config
from cloner.context import CloneOptions, CloneStats
from cloner.errors import ResolutionError

logger = logging.getLogger("cloner.commands")

config = Config(logger=logger)

GUILD_IDS = sorted(set(config.COMMAND_GUILD_IDS)) or None


def guild_scoped_slash_command(*dargs, **dkwargs):
    """Scope slash commands to COMMAND_GUILD_IDS when configured, else global."""
    dkwargs.setdefault("guild_ids", GUILD_IDS)
    return commands.slash_command(*dargs, **dkwargs)


def stats_fields(stats: CloneStats) -> list[tuple[str, str, bool]]:
    return [
        ("Roles", str(stats.roles_created), True),
        ("Categories", str(stats.categories_created), True),
        ("Channels", str(stats.channels_created), True),
        ("Emojis", str(stats.emojis_created), True),
        ("Failed", str(stats.failed), True),
        ("Success Rate", f"{stats.success_rate}%", True),
    ]


class CloneCommands(commands.Cog):
    """
    Slash commands that drive a clone run, restricted to COMMAND_USERS.
    """

    def __init__(self, bot: commands.Bot):
        self.bot = bot
        self.allowed_users = getattr(config, "COMMAND_USERS", []) or []
        self.progress: deque[str] = deque(maxlen=max(1, config.PROGRESS_BUFFER_LINES))

    @property
    def runner(self):
        return self.bot.cloner

    async def cog_check(self, ctx: commands.Context):
        """
        Only users whose ID is set in config may execute commands.
        """
        cmd = ctx.command
        guild_name = ctx.guild.name if ctx.guild else "Unknown"

        if ctx.user.id not in self.allowed_users:
            await ctx.respond(
                "You are not authorized to use this command.", ephemeral=True
            )
            logger.warning(
                f"[⚠️] Unauthorized access: {ctx.user.name} ({ctx.user.id}) attempted to run "
                f"command '{cmd.name if cmd else 'unknown'}' in {guild_name}."
            )
            return False

        logger.info(
            f"[⚡] {ctx.user.name} ({ctx.user.id}) executed the "
            f"'{cmd.name if cmd else 'unknown'}' command in {guild_name}."
        )
        return True

    @commands.Cog.listener()
    async def on_application_command_error(self, interaction, error):
        orig = getattr(error, "original", None)
        err = orig or error

        if isinstance(err, (commands.CheckFailure, discord_errors.CheckFailure)):
            return

        cmd = interaction.command.name if interaction.command else "<unknown>"
        logger.exception(f"Error in command '{cmd}':", exc_info=err)

    @commands.Cog.listener()
    async def on_ready(self):
        if not self.allowed_users:
            logger.warning(
                "[⚠️] No command users configured. Slash commands will not work."
            )

    def _ok_embed(self, title: str, description: str, *, fields=None) -> discord.Embed:
        e = discord.Embed(
            title=title,
            description=description,
            color=discord.Color.blurple(),
            timestamp=datetime.now(timezone.utc),
        )
        for name, value, inline in fields or []:
            e.add_field(name=name, value=value, inline=inline)
        return e

    def _err_embed(self, title: str, description: str) -> discord.Embed:
        return discord.Embed(
            title=title,
            description=description,
            color=discord.Color.red(),
            timestamp=datetime.now(timezone.utc),
        )

    async def _run_clone(self, cloner, channel, source_id: str, target_id: str, opts):
        try:
            stats = await cloner.start(source_id, target_id, opts)
        except ResolutionError as e:
            if channel is not None:
                await channel.send(embed=self._err_embed("Clone failed", str(e)))
            return
        except Exception:
            logger.exception("[⛔] Clone run crashed")
            if channel is not None:
                await channel.send(
                    embed=self._err_embed(
                        "Clone failed", "Unexpected error; check the bot logs."
                    )
                )
            return

        title = "Clone stopped" if cloner.stopped else "Clone complete"
        if channel is not None:
            try:
                await channel.send(
                    embed=self._ok_embed(
                        title,
                        f"`{source_id}` → `{target_id}`",
                        fields=stats_fields(stats),
                    )
                )
            except discord.HTTPException as e:
                # The invoking channel may itself have been deleted by cleanup.
                logger.info("[ℹ️] Could not post clone summary: %s", e)

    @guild_scoped_slash_command(
        name="clone",
        description="Clone roles, channels and emojis from one server into another.",
    )
    async def clone(
        self,
        ctx: discord.ApplicationContext,
        source_id: str = Option(str, "Server to copy from", required=True),
        target_id: str = Option(str, "Server to copy into", required=True),
        delete_channels: bool = Option(
            bool, "Delete existing channels in the target", required=False, default=None
        ),
        delete_roles: bool = Option(
            bool, "Delete existing roles in the target", required=False, default=None
        ),
        delete_emojis: bool = Option(
            bool, "Delete existing emojis in the target", required=False, default=None
        ),
        clone_channels: bool = Option(
            bool, "Clone categories and channels", required=False, default=None
        ),
        clone_roles: bool = Option(bool, "Clone roles", required=False, default=None),
        clone_emojis: bool = Option(bool, "Clone emojis", required=False, default=None),
        update_info: bool = Option(
            bool, "Copy server name and icon", required=False, default=None
        ),
    ):
        if self.runner.is_busy():
            return await ctx.respond(
                embed=self._err_embed(
                    "Clone already running",
                    "Use /clone_stop or wait for the current run to finish.",
                ),
                ephemeral=True,
            )

        if source_id.strip() == target_id.strip():
            return await ctx.respond(
                embed=self._err_embed(
                    "Invalid servers", "Source and target must be different servers."
                ),
                ephemeral=True,
            )

        opts = CloneOptions.from_mapping(
            resolve_clone_options(
                config,
                {
                    "delete_channels": delete_channels,
                    "delete_roles": delete_roles,
                    "delete_emojis": delete_emojis,
                    "clone_channels": clone_channels,
                    "clone_roles": clone_roles,
                    "clone_emojis": clone_emojis,
                    "update_info": update_info,
                },
            )
        )

        self.progress.clear()
        cloner = self.runner.new_cloner(log_sink=self.progress.append)
        self.runner.active = cloner
        self.runner.active_task = asyncio.create_task(
            self._run_clone(cloner, ctx.channel, source_id, target_id, opts)
        )

        enabled = [name for name, value in vars(opts).items() if value]
        await ctx.respond(
            embed=self._ok_embed(
                "Clone started",
                f"`{source_id}` → `{target_id}`\n"
                f"Options: {', '.join(enabled) or 'none'}\n"
                "Use /clone_status to follow progress.",
            ),
            ephemeral=True,
        )

    @guild_scoped_slash_command(
        name="clone_stop",
        description="Stop the running clone after the current step.",
    )
    async def clone_stop(self, ctx: discord.ApplicationContext):
        cloner = self.runner.active
        if cloner is None or not self.runner.is_busy():
            return await ctx.respond("No clone is running.", ephemeral=True)

        cloner.request_stop()
        await ctx.respond(
            embed=self._ok_embed(
                "Stopping", "The clone will halt once the current request completes."
            ),
            ephemeral=True,
        )

    @guild_scoped_slash_command(
        name="clone_status",
        description="Show counters and recent progress of the last clone.",
    )
    async def clone_status(self, ctx: discord.ApplicationContext):
        cloner = self.runner.active
        if cloner is None:
            return await ctx.respond("No clone has been started yet.", ephemeral=True)

        if self.runner.is_busy():
            state = "stopping" if cloner.stopped else "running"
        else:
            state = "stopped" if cloner.stopped else "finished"

        recent = list(self.progress)[-10:]
        body = "\n".join(f"• {line}" for line in recent) or "No progress yet."
        if len(body) > 3500:
            body = body[-3500:]

        await ctx.respond(
            embed=self._ok_embed(
                f"Clone {state}", body, fields=stats_fields(cloner.stats)
            ),
            ephemeral=True,
        )


def setup(bot: commands.Bot):
    bot.add_cog(CloneCommands(bot))
