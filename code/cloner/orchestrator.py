# =============================================================================
#  Clonecord
#  Copyright (C) 2025 github.com/Copycord
#
#  This source code is released under the GNU Affero General Public License
#  version 3.0. A copy of the license is available at:
#  https://www.gnu.org/licenses/agpl-3.0.en.html
# =============================================================================


from __future__ import annotations
from typing import Mapping, Optional, Union

from cloner import logctx
from cloner.assets import AssetFetcher
from cloner.channels import CategoryReplicator, ChannelReplicator
from cloner.cleanup import CleanupPhase
from cloner.context import CloneOptions, CloneStats, LogSink, RunContext
from cloner.emojis import EmojiReplicator
from cloner.errors import ResolutionError
from cloner.guild_resolver import GuildResolver
from cloner.metadata import MetadataSynchronizer
from cloner.overwrites import OverwriteMapper
from cloner.pacing import PacingPolicy
from cloner.roles import RoleReplicator


class ServerCloner:
    """
    One clone run from a source guild into a target guild.

    Phases run strictly one after another: cleanup, roles, categories,
    channels, emojis, guild info. Channels depend on categories and every
    overwrite depends on the roles created before it. A failure on a single
    item is logged and counted; only an unresolvable guild aborts the run.

    request_stop() may be called at any time, from any coroutine on the same
    loop. It is checked before each remote call, so the call in flight
    always completes.
    """

    def __init__(
        self,
        bot,
        *,
        fetcher: Optional[AssetFetcher] = None,
        pacing: Optional[PacingPolicy] = None,
        log_sink: Optional[LogSink] = None,
        shrink_emojis: bool = True,
    ):
        self.bot = bot
        self.resolver = GuildResolver(bot)
        self.fetcher = fetcher or AssetFetcher()
        self._owns_fetcher = fetcher is None
        self.shrink_emojis = shrink_emojis
        self.ctx = RunContext(pacing=pacing or PacingPolicy(), sink=log_sink)
        self.running = False

    @property
    def stats(self) -> CloneStats:
        return self.ctx.stats

    @property
    def role_map(self):
        return self.ctx.role_map

    @property
    def stopped(self) -> bool:
        return self.ctx.stopped

    def request_stop(self) -> None:
        if self.ctx.stopped:
            return
        self.ctx.token.cancel()
        self.ctx.log("warning", "[🛑] Stop signal received. Halting process...")

    def success_rate(self) -> int:
        return self.ctx.stats.success_rate

    async def start(
        self,
        source_id,
        target_id,
        options: Union[CloneOptions, Mapping[str, object], None] = None,
    ) -> CloneStats:
        return await self.clone_server(source_id, target_id, options)

    async def clone_server(
        self,
        source_ref,
        target_ref,
        options: Union[CloneOptions, Mapping[str, object], None] = None,
    ) -> CloneStats:
        opts = (
            options
            if isinstance(options, CloneOptions)
            else CloneOptions.from_mapping(options)
        )

        try:
            source, target = self.resolver.resolve_pair(source_ref, target_ref)
        except ResolutionError as e:
            self.ctx.log("error", "[⛔] Cloning failed: %s", e)
            raise

        # Each run starts from an empty RoleMap and zeroed counters. The stop
        # token is kept so a stop requested before start() still applies.
        self.ctx = RunContext(
            pacing=self.ctx.pacing, sink=self.ctx.sink, token=self.ctx.token
        )

        label = logctx.set_clone_label(source.name, target.name)
        self.running = True
        try:
            await self._run_phases(source, target, opts)
        finally:
            self.running = False
            logctx.reset_clone_label(label)
            if self._owns_fetcher:
                await self.fetcher.close()

        return self.ctx.stats

    async def _run_phases(self, source, target, opts: CloneOptions) -> None:
        ctx = self.ctx
        mapper = OverwriteMapper(ctx.role_map)

        ctx.log("info", "Cloning from: %s -> %s", source.name, target.name)
        ctx.log("info", "Starting cloning process...")

        await CleanupPhase(ctx).run(target, opts)

        if opts.clone_roles and not ctx.stopped:
            await RoleReplicator(ctx).run(source, target)

        if opts.clone_channels and not ctx.stopped:
            await CategoryReplicator(ctx, mapper).run(source, target)
            if not ctx.stopped:
                await ChannelReplicator(ctx, mapper).run(source, target)

        if opts.clone_emojis and not ctx.stopped:
            await EmojiReplicator(ctx, self.fetcher, shrink=self.shrink_emojis).run(
                source, target
            )

        if opts.update_info and not ctx.stopped:
            await MetadataSynchronizer(ctx, self.fetcher).run(source, target)

        if ctx.stopped:
            ctx.log("warning", "[⚠️] Cloning stopped by user.")
            return

        ctx.log(
            "info",
            "[🎉] Cloning completed! Success Rate: %d%%",
            ctx.stats.success_rate,
        )
