import discord
import pytest

from cloner.channels import (
    CategoryReplicator,
    ChannelReplicator,
    clamp_bitrate,
    source_categories,
    source_channels,
)
from cloner.overwrites import OverwriteMapper

from fakes import FakeGuild, overwrite


@pytest.mark.parametrize(
    "source_bitrate, limit, expected",
    [
        (384000, 96000.0, 96000),
        (64000, 96000.0, 64000),
        (384000, 256000.0, 256000),
        (128000, None, 96000),
        (128000, 0, 96000),
        (8000, None, 8000),
    ],
)
def test_clamp_bitrate(source_bitrate, limit, expected):
    guild = FakeGuild(1, "g", bitrate_limit=limit)
    assert clamp_bitrate(source_bitrate, guild) == expected


def test_source_ordering_and_type_filter(source):
    source.add_channel("b", position=2)
    source.add_category("Info", position=1)
    source.add_channel("stage", discord.ChannelType.stage_voice, position=0)
    source.add_channel("a", discord.ChannelType.voice, position=1)
    source.add_category("Lobby", position=0)
    source.add_channel("forum", discord.ChannelType.forum, position=0)

    assert [c.name for c in source_categories(source)] == ["Lobby", "Info"]
    assert [c.name for c in source_channels(source)] == ["a", "b"]


async def test_category_then_channel_resolves_parent_by_name(ctx, sleeper, source, target):
    info = source.add_category("Info", position=0)
    source.add_channel("general", category=info, topic=None, nsfw=True, slowmode_delay=5)

    mapper = OverwriteMapper(ctx.role_map)
    await CategoryReplicator(ctx, mapper).run(source, target)
    await ChannelReplicator(ctx, mapper).run(source, target)

    assert [c.name for c in target.channels] == ["Info", "general"]
    new_info, general = target.channels
    assert general.category is new_info
    assert general.category.id == new_info.id != info.id
    assert general.created_with["topic"] == ""
    assert general.created_with["nsfw"] is True
    assert general.created_with["slowmode_delay"] == 5
    assert ctx.stats.categories_created == 1
    assert ctx.stats.channels_created == 1
    assert sleeper.delays == [5.0, 5.0]


async def test_parent_falls_back_to_existing_target_category(ctx, source, target):
    info = source.add_category("Info")
    source.add_channel("general", category=info)
    existing = target.add_category("Info")

    await ChannelReplicator(ctx, OverwriteMapper(ctx.role_map)).run(source, target)

    created = target.channels[-1]
    assert created.category is existing


async def test_channel_without_parent(ctx, source, target):
    source.add_channel("loose")
    await ChannelReplicator(ctx, OverwriteMapper(ctx.role_map)).run(source, target)
    assert target.channels[-1].category is None


async def test_voice_channel_attributes(ctx, source):
    target = FakeGuild(3003, "Low tier", bitrate_limit=64000.0)
    source.add_channel(
        "Voice", discord.ChannelType.voice, position=3, bitrate=128000, user_limit=7
    )

    await ChannelReplicator(ctx, OverwriteMapper(ctx.role_map)).run(source, target)

    kw = target.channels[-1].created_with
    assert kw["bitrate"] == 64000
    assert kw["user_limit"] == 7
    assert kw["position"] == 3
    assert "topic" not in kw


async def test_category_overwrites_use_target_ids(ctx, source, target):
    admin = source.add_role("Admin", 2)
    ghost = source.add_role("Ghost", 1)
    cat = source.add_category(
        "Staff",
        position=4,
        overwrites=[
            overwrite(admin.id, allow=1024),
            overwrite(ghost.id, deny=1024),
            overwrite(777, "member", allow=2048),
        ],
    )
    new_admin = target.add_role("Admin")
    ctx.role_map.record(admin.id, new_admin)

    await CategoryReplicator(ctx, OverwriteMapper(ctx.role_map)).run(source, target)

    created = target.categories[-1]
    assert created.created_with["position"] == cat.position
    subjects = {getattr(k, "id", None) for k in created.created_with["overwrites"]}
    assert subjects == {new_admin.id, 777}
    assert admin.id not in subjects and ghost.id not in subjects


async def test_channel_failure_is_counted_and_loop_continues(ctx, sleeper, source, target):
    source.add_channel("one", position=0)
    source.add_channel("two", position=1)
    source.add_channel("three", position=2)
    target.fail_on.add("two")

    await ChannelReplicator(ctx, OverwriteMapper(ctx.role_map)).run(source, target)

    assert [c.name for c in target.channels] == ["one", "three"]
    assert ctx.stats.channels_created == 2
    assert ctx.stats.failed == 1
    assert sleeper.delays == [5.0, 5.0]


async def test_category_stop_mid_phase(ctx, source, target):
    source.add_category("A", position=0)
    source.add_category("B", position=1)
    target.on_call = lambda op, name: ctx.token.cancel()

    await CategoryReplicator(ctx, OverwriteMapper(ctx.role_map)).run(source, target)

    assert [c.name for c in target.categories] == ["A"]
