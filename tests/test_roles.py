from cloner.roles import RoleReplicator, clonable_roles


def test_clonable_roles_skip_default_and_managed(source):
    source.add_role("Member", 1)
    source.add_role("Bot", 3, managed=True)
    source.add_role("Admin", 2)

    assert [r.name for r in clonable_roles(source)] == ["Admin", "Member"]


async def test_roles_created_in_descending_position(ctx, sleeper, source, target):
    admin = source.add_role("Admin", 2, permissions=8, colour=0xFF0000, hoist=True)
    member = source.add_role("Member", 1, mentionable=True)

    await RoleReplicator(ctx).run(source, target)

    created = [r for r in target.roles if not r.is_default()]
    assert [r.name for r in created] == ["Admin", "Member"]
    assert created[0].permissions.value == 8
    assert created[0].colour.value == 0xFF0000
    assert created[0].hoist is True
    assert created[1].mentionable is True

    assert len(ctx.role_map) == 2
    assert ctx.role_map[admin.id] == created[0].id
    assert ctx.role_map[member.id] == created[1].id
    assert ctx.stats.roles_created == 2
    assert ctx.stats.failed == 0
    assert sleeper.delays == [5.0, 5.0]


async def test_failed_role_has_no_map_entry(ctx, sleeper, source, target):
    a = source.add_role("A", 3)
    b = source.add_role("B", 2)
    c = source.add_role("C", 1)
    bot_role = source.add_role("Integration", 4, managed=True)
    target.fail_on.add("B")

    await RoleReplicator(ctx).run(source, target)

    assert a.id in ctx.role_map and c.id in ctx.role_map
    assert b.id not in ctx.role_map
    assert bot_role.id not in ctx.role_map
    assert source.id not in ctx.role_map
    assert ctx.stats.roles_created == 2
    assert ctx.stats.failed == 1
    assert sleeper.delays == [5.0, 5.0]


async def test_stop_before_phase_creates_nothing(ctx, source, target):
    source.add_role("Admin", 2)
    ctx.token.cancel()

    await RoleReplicator(ctx).run(source, target)

    assert target.calls == []
    assert ctx.stats.roles_created == 0


async def test_stop_mid_phase_lets_inflight_call_finish(ctx, source, target):
    for i in range(4):
        source.add_role(f"R{i}", 10 - i)

    def stop_after_first(op, name):
        ctx.token.cancel()

    target.on_call = stop_after_first

    await RoleReplicator(ctx).run(source, target)

    assert target.calls == [("create_role", "R0")]
    assert ctx.stats.roles_created == 1
    assert len(ctx.role_map) == 1
