import pytest

from cogs.study_cog.cards import Filter
from cogs.study_cog.events import KeyEvent, MouseEvent, TouchEvent, TouchPoint
from cogs.study_cog.gesture import Direction
from cogs.study_cog.shell import AdvanceMode, Command, StudyShell, format_time
from cogs.study_cog.speech import SpeechAdapter
from cogs.study_cog.store import CardStore
from conftest import FakeWordsClient, make_words, settle


async def mounted_shell(client, engine=None, **kwargs) -> StudyShell:
    store = CardStore(client)
    await store.load()
    kwargs.setdefault('tick_interval', 3600)
    shell = StudyShell(store, SpeechAdapter(engine), **kwargs)
    shell.mount()
    return shell


def touch(x, y):
    return TouchEvent(target_touches=(TouchPoint(x, y),))


@pytest.mark.asyncio
@pytest.mark.parametrize('key, expected', [
    ('ArrowRight', 'term-B'),
    ('j', 'term-B'),
    ('ArrowLeft', 'term-C'),
    ('k', 'term-C'),
])
async def test_navigation_keys(client, key, expected):
    shell = await mounted_shell(client)

    assert shell.handle_key(KeyEvent(key)) is True
    assert shell.store.current_card.term == expected
    await shell.unmount()


@pytest.mark.asyncio
async def test_flip_keys_toggle(client):
    shell = await mounted_shell(client)

    shell.handle_key(KeyEvent('Enter'))
    assert shell.flipped is True
    shell.handle_key(KeyEvent(' '))
    assert shell.flipped is False
    await shell.unmount()


@pytest.mark.asyncio
async def test_keys_are_ignored_inside_text_inputs(client):
    shell = await mounted_shell(client)

    assert shell.handle_key(KeyEvent('j', in_text_input=True)) is False
    assert shell.handle_key(KeyEvent('Enter', in_text_input=True)) is False
    assert shell.store.index == 0
    assert shell.flipped is False
    await shell.unmount()


@pytest.mark.asyncio
async def test_unknown_keys_are_not_handled(client):
    shell = await mounted_shell(client)
    assert shell.handle_key(KeyEvent('x')) is False
    await shell.unmount()


@pytest.mark.asyncio
async def test_keys_are_ignored_after_unmount(client):
    shell = await mounted_shell(client)
    await shell.unmount()

    assert shell.handle_key(KeyEvent('j')) is False
    assert shell.store.index == 0


@pytest.mark.asyncio
async def test_flip_and_hint_reset_when_card_changes(client):
    shell = await mounted_shell(client)
    shell.dispatch(Command.FLIP)
    shell.dispatch(Command.TOGGLE_HINT)

    shell.dispatch(Command.NEXT)

    assert shell.flipped is False
    assert shell.show_hint is False
    await shell.unmount()


@pytest.mark.asyncio
async def test_flip_survives_changes_to_the_same_card(client):
    shell = await mounted_shell(client)
    shell.dispatch(Command.FLIP)
    shell.dispatch(Command.TOGGLE_FAVOURITE)

    assert shell.flipped is True
    assert shell.store.current_card.is_favourite is True
    await shell.unmount()


@pytest.mark.asyncio
async def test_swipes_drive_the_same_commands_as_keys(client):
    shell = await mounted_shell(client)

    shell.on_touch_start(touch(200, 0))
    shell.on_touch_move(touch(100, 10))
    assert shell.on_touch_end() is Direction.LEFT
    assert shell.store.current_card.term == 'term-B'

    shell.on_mouse_down(MouseEvent(0, 0))
    shell.on_mouse_move(MouseEvent(120, 0))
    assert shell.on_mouse_up() is Direction.RIGHT
    assert shell.store.current_card.term == 'term-A'

    # vertical swipes are recognised but not bound
    shell.on_touch_start(touch(0, 200))
    shell.on_touch_move(touch(0, 0))
    assert shell.on_touch_end() is Direction.UP
    assert shell.store.current_card.term == 'term-A'
    await shell.unmount()


@pytest.mark.asyncio
async def test_short_drag_does_nothing(client):
    shell = await mounted_shell(client)
    shell.on_mouse_down(MouseEvent(0, 0))
    shell.on_mouse_move(MouseEvent(-20, 0))
    assert shell.on_mouse_up() is Direction.NONE
    assert shell.store.index == 0
    await shell.unmount()


@pytest.mark.asyncio
async def test_speak_uses_term_or_example(client, engine):
    engine.blocking = False
    shell = await mounted_shell(client, engine, locale='tr-TR')

    await shell.speak()
    shell.dispatch(Command.FLIP)
    shell.dispatch(Command.SPEAK)
    await settle()

    assert engine.spoken == [('term-A', 'tr-TR'), ('example-A', 'tr-TR')]
    await shell.unmount()


@pytest.mark.asyncio
async def test_speak_falls_back_to_term_without_example(engine):
    engine.blocking = False
    shell = await mounted_shell(FakeWordsClient(make_words(1, example=None)), engine)

    shell.dispatch(Command.FLIP)
    await shell.speak()

    assert [text for text, _ in engine.spoken] == ['term-A']
    await shell.unmount()


@pytest.mark.asyncio
async def test_speak_without_support_is_a_noop(client):
    shell = await mounted_shell(client)
    assert shell.speak() is None
    await shell.unmount()


@pytest.mark.asyncio
async def test_learn_mode_marks_before_advancing(client):
    shell = await mounted_shell(client, mode=AdvanceMode.LEARN)

    shell.handle_key(KeyEvent('ArrowRight'))

    assert shell.store.get('1').learned is True
    assert shell.store.current_card.id == '2'
    await shell.unmount()
    assert ('learn', '1', True) in client.calls


@pytest.mark.asyncio
async def test_mark_learned_advances(client):
    shell = await mounted_shell(client)

    shell.dispatch(Command.MARK_LEARNED)

    assert shell.store.get('1').learned is True
    assert shell.store.current_card.id == '2'
    await shell.unmount()


@pytest.mark.asyncio
async def test_mark_learned_does_not_skip_when_card_leaves_view(client):
    shell = await mounted_shell(client)
    shell.set_filter(Filter.TO_LEARN)
    shell.dispatch(Command.NEXT)

    shell.dispatch(Command.MARK_LEARNED)

    # the view shrank to [A, C] and the cursor went back to the start
    assert [c.id for c in shell.store.filtered_cards] == ['1', '3']
    assert shell.store.current_card.id == '1'
    await shell.unmount()


@pytest.mark.asyncio
async def test_commands_on_empty_view_are_safe(client):
    shell = await mounted_shell(client)
    shell.set_filter(Filter.FAVORITE)

    for command in Command:
        shell.dispatch(command)

    assert shell.store.current_card is None
    await shell.unmount()
    assert client.mutations() == []


@pytest.mark.asyncio
async def test_tick_counts_session_and_card_time(client):
    shell = await mounted_shell(client)
    for _ in range(3):
        shell.tick()

    assert shell.session_seconds == 3
    assert shell.card_seconds == 3

    shell.dispatch(Command.TOGGLE_PAUSE)
    shell.tick()
    assert shell.session_seconds == 3

    shell.dispatch(Command.TOGGLE_PAUSE)
    shell.tick()
    assert shell.session_seconds == 4
    await shell.unmount()


@pytest.mark.asyncio
async def test_card_time_is_flushed_on_card_change(client):
    shell = await mounted_shell(client)
    for _ in range(4):
        shell.tick()

    shell.dispatch(Command.NEXT)
    await shell.store.drain()

    assert client.mutations() == [('time', '1', 4)]
    assert shell.store.get('1').time_spent == 4
    assert shell.card_seconds == 0
    await shell.unmount()


@pytest.mark.asyncio
async def test_card_time_is_flushed_periodically(client):
    shell = await mounted_shell(client, flush_after=5)
    for _ in range(12):
        shell.tick()
    await shell.store.drain()

    assert client.mutations() == [('time', '1', 5), ('time', '1', 5)]
    assert shell.card_seconds == 2
    await shell.unmount()


@pytest.mark.asyncio
async def test_unmount_flushes_remaining_time(client):
    shell = await mounted_shell(client)
    shell.dispatch(Command.NEXT)
    shell.tick()
    shell.tick()

    await shell.unmount()

    assert client.mutations() == [('time', '2', 2)]
    assert shell.store.pending_requests == 0


@pytest.mark.asyncio
async def test_no_time_recorded_for_empty_view(client):
    shell = await mounted_shell(client)
    shell.set_filter(Filter.LEARNED)
    shell.tick()
    shell.tick()

    await shell.unmount()

    assert shell.session_seconds == 2
    assert client.mutations() == []


@pytest.mark.asyncio
async def test_snapshot(client):
    shell = await mounted_shell(client)
    shell.dispatch(Command.NEXT)
    shell.dispatch(Command.FLIP)
    shell.tick()

    state = shell.snapshot()

    assert state.card.id == '2'
    assert (state.position, state.total) == (2, 3)
    assert state.flipped is True
    assert state.filter is Filter.ALL
    assert state.session_seconds == 1
    assert state.speech_supported is False
    assert state.loaded is True
    assert state.stats.total == 3
    await shell.unmount()


@pytest.mark.asyncio
async def test_change_listeners(client):
    shell = await mounted_shell(client)
    calls = []
    shell.on_change(lambda: calls.append(shell.flipped))

    shell.dispatch(Command.FLIP)
    shell.dispatch(Command.NEXT)

    assert calls == [True, False]
    await shell.unmount()


@pytest.mark.parametrize('seconds, text', [
    (0, '0:00'),
    (9, '0:09'),
    (75, '1:15'),
    (3600, '60:00'),
])
def test_format_time(seconds, text):
    assert format_time(seconds) == text
