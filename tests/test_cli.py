"""Tests for the command-line interface."""
import pytest

from idlecore.cli import build_parser, main, parse_score


def test_parser_subcommands():
    parser = build_parser()
    args = parser.parse_args(["offline", "--away", "30", "--score", "code-breaker=10"])
    assert args.command == "offline"
    assert args.away == 30
    assert args.score == ["code-breaker=10"]
    assert args.money is None


def test_no_command_prints_help(capsys):
    with pytest.raises(SystemExit) as exc:
        main([])
    assert exc.value.code == 0
    assert "idlecore" in capsys.readouterr().out


def test_parse_score():
    assert parse_score("code-breaker=1500") == ("code-breaker", "1500")
    with pytest.raises(ValueError):
        parse_score("code-breaker")
    with pytest.raises(ValueError):
        parse_score("code-breaker=lots")


def test_bad_score_exits(capsys):
    with pytest.raises(SystemExit) as exc:
        main(["rates", "--score", "oops"])
    assert exc.value.code == 2
    assert "Invalid score" in capsys.readouterr().err


def test_catalog(capsys):
    main(["catalog"])
    out = capsys.readouterr().out
    assert "[equipment]" in out
    assert "[minigame]" in out
    assert "Auto-Typer" in out
    assert "100 money + 10 technique" in out


def test_catalog_after_buying(capsys):
    main(["catalog", "--category", "equipment", "--money", "1000", "--buy", "auto-typer"])
    out = capsys.readouterr().out
    assert "[hardware]" not in out
    assert "lv 1" in out
    assert "105% generation" in out


def test_offline_short_absence(capsys):
    main(["offline", "--away", "30", "--score", "code-breaker=1000"])
    out = capsys.readouterr().out
    assert "Offline progress applied." in out
    assert "Time away: 30s" in out
    assert "Earned: $150" in out


def test_offline_capped_absence(capsys):
    main(["offline", "--away", "36000", "--score", "code-breaker=1000"])
    out = capsys.readouterr().out
    assert "Welcome back!" in out
    assert "Time away: 10h (capped)" in out
    assert "Efficiency: 50%" in out
    assert "Earned: $144.00K" in out


def test_offline_with_automation(capsys):
    main(
        [
            "offline",
            "--away",
            "3600",
            "--money",
            "1100",
            "--technique",
            "10",
            "--buy",
            "book-summarizer",
        ]
    )
    out = capsys.readouterr().out
    assert "Automation book-summarizer: 30/30 runs" in out
    assert "$700" in out


def test_offline_nothing_to_report(capsys):
    main(["offline", "--away", "0.5"])
    assert "No offline progress." in capsys.readouterr().out


def test_rates(capsys):
    main(["rates", "--score", "code-breaker=1000"])
    out = capsys.readouterr().out
    assert "$10/sec" in out
    assert "0 TP/sec" in out


def test_log_options():
    args = build_parser().parse_args(["--log-level", "debug", "--log-format", "json", "rates"])
    assert args.log_level == "DEBUG"
    assert args.log_format == "json"


def test_bad_log_env_exits(monkeypatch, capsys):
    monkeypatch.setenv("IDLECORE_LOG_FORMAT", "xml")
    with pytest.raises(SystemExit) as exc:
        main(["rates"])
    assert exc.value.code == 2
    assert "Invalid log format" in capsys.readouterr().err
