"""Tests for the terminal front-end."""

from __future__ import annotations

import pytest

from conftest import PROFILE, FakeDispatcher, FakeProbe, FakeProfileStore
from firsthelp.actions.launchers import LoggingActionLauncher
from firsthelp.cli import build_parser, main, prompt_actions
from firsthelp.core.sos import SOSSession
from firsthelp.profile.file_store import FileProfileStore


def _lines(*lines):
    """Async line reader returning ``lines`` then end of input."""
    pending = list(lines)

    async def read_line():
        return pending.pop(0) if pending else None

    return read_line


def _active_session(scheduler, alarm, launcher, profile=PROFILE) -> SOSSession:
    session = SOSSession(
        scheduler=scheduler,
        alarm=alarm,
        probe=FakeProbe(None),
        dispatcher=FakeDispatcher(),
        profiles=FakeProfileStore(profile),
        launcher=launcher,
        countdown_seconds=0,
    )
    session.start()
    return session


@pytest.fixture
def profile_path(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    path = tmp_path / "storage.json"
    monkeypatch.setenv("FIRSTHELP_PROFILE_PATH", str(path))
    monkeypatch.setenv("FIRSTHELP_AUDIO_ENABLED", "false")
    return path


def test_profile_show_without_profile(profile_path, capsys):
    assert main(["profile", "show"]) == 1
    assert "No profile stored." in capsys.readouterr().out


def test_profile_set_then_show(profile_path, capsys):
    code = main([
        "profile", "set", "--name", "Ada Lovelace", "--phone", "555-000-1111",
        "--email", "ada@example.com", "--contact", "5551234567",
    ])
    assert code == 0
    assert FileProfileStore(profile_path).get_profile().emergency_contact == "5551234567"

    capsys.readouterr()
    assert main(["profile", "show"]) == 0
    out = capsys.readouterr().out
    assert "name: Ada Lovelace" in out
    assert "emergencyContact: 5551234567" in out


def test_profile_set_rejects_invalid_input(profile_path, capsys):
    code = main([
        "profile", "set", "--name", "Ada", "--phone", "12",
        "--email", "ada@example.com", "--contact", "5551234567",
    ])
    assert code == 2
    assert "phone: Please enter a valid 10-digit phone number" in capsys.readouterr().err
    assert not profile_path.exists()


def test_cpr_runs_for_requested_duration(profile_path, capsys):
    assert main(["cpr", "--duration", "0.05"]) == 0
    out = capsys.readouterr().out
    assert "Rate: 110 bpm" in out
    assert "Stopped after 00:00, 0 cycles completed." in out


def test_parser_requires_a_command():
    with pytest.raises(SystemExit):
        build_parser().parse_args([])


def test_sos_defaults():
    args = build_parser().parse_args(["sos"])
    assert args.message is None
    assert args.open_actions is False
    assert args.linger == 30.0


def test_profile_clear(profile_path, capsys):
    main([
        "profile", "set", "--name", "Ada Lovelace", "--phone", "5550001111",
        "--email", "ada@example.com", "--contact", "5551234567",
    ])
    capsys.readouterr()

    assert main(["profile", "clear"]) == 0
    assert "Profile cleared." in capsys.readouterr().out
    assert FileProfileStore(profile_path).get_profile() is None

    assert main(["profile", "clear"]) == 1
    assert "No profile stored." in capsys.readouterr().out


# -- manual actions once SOS is active --------------------------------------


@pytest.mark.asyncio
async def test_numbered_choice_opens_emergency_call(scheduler, alarm, capsys):
    opened = []
    session = _active_session(scheduler, alarm, LoggingActionLauncher(echo=opened.append))
    await session.settle()

    quit_early = await prompt_actions(session, _lines("1\n", "q\n"))

    assert quit_early is True
    assert opened == ["-> tel:911"]
    out = capsys.readouterr().out
    assert "1. Call emergency services" in out
    assert "4. Share location" in out
    session.close()


@pytest.mark.asyncio
async def test_bad_choices_keep_the_menu_open(scheduler, alarm, capsys):
    opened = []
    session = _active_session(scheduler, alarm, LoggingActionLauncher(echo=opened.append))
    await session.settle()

    quit_early = await prompt_actions(session, _lines("9\n", "abc\n", "\n", "4\n", "3\n"))

    assert quit_early is False
    out = capsys.readouterr().out
    assert "Unknown choice: 9" in out
    assert "Unknown choice: abc" in out
    assert "Location unavailable." in out
    assert len(opened) == 1
    assert opened[0].startswith("-> sms:5551234567?body=")
    session.close()


@pytest.mark.asyncio
async def test_menu_without_contact_offers_call_and_location_only(scheduler, alarm, capsys):
    opened = []
    session = _active_session(scheduler, alarm, LoggingActionLauncher(echo=opened.append), profile=None)
    await session.settle()

    await prompt_actions(session, _lines("2\n", "q\n"))

    out = capsys.readouterr().out
    assert "1. Call emergency services" in out
    assert "2. Share location" in out
    assert "Call emergency contact" not in out
    assert opened == []
    session.close()


@pytest.mark.asyncio
async def test_menu_ends_when_session_closes(scheduler, alarm):
    session = _active_session(scheduler, alarm, LoggingActionLauncher(echo=lambda _: None))
    session.close()
    assert await prompt_actions(session, _lines("1\n")) is False
