import json
import logging
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
import respx

from catalogueur import __version__
from catalogueur.cli import _setup_logging, create_parser, main
from catalogueur.models import GameDetails, ScrapedGameRecord, DownloadUrl


@pytest.fixture(autouse=True)
def restore_root_logger():
    """main() reconfigures the root logger; undo it after each test."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.mark.unit
def test_version_flag(capsys):
    with pytest.raises(SystemExit) as exc_info:
        create_parser().parse_args(["--version"])
    assert exc_info.value.code == 0
    assert __version__ in capsys.readouterr().out


@pytest.mark.unit
def test_parse_resolve_arguments():
    args = create_parser().parse_args([
        "--log-level", "debug",
        "resolve", "Doom II",
        "--backend", "giantbomb",
        "--platform", "PC",
        "--platform", "DOS",
        "--release-date", "1994-09-30",
        "--interactive",
    ])
    assert args.command == "resolve"
    assert args.log_level == "DEBUG"
    assert args.platforms == ["PC", "DOS"]
    assert str(args.release_date) == "1994-09-30"
    assert args.interactive is True


@pytest.mark.unit
def test_backend_is_required():
    with pytest.raises(SystemExit):
        create_parser().parse_args(["resolve", "Doom"])


@pytest.mark.unit
def test_invalid_config_exits_with_error(make_config, capsys):
    path = make_config({"crawler": {"timeout": -1}})
    assert main(["--config", str(path), "legacy-games"]) == 1
    assert "Configuration error" in capsys.readouterr().err


@pytest.mark.unit
def test_setup_logging_pins_http_loggers(tmp_path: Path):
    log_file = tmp_path / "logs" / "catalogueur.log"
    _setup_logging({"logging": {"level": "DEBUG", "console": False, "file": str(log_file)}})

    assert logging.getLogger().level == logging.DEBUG
    assert logging.getLogger("httpx").level == logging.WARNING
    assert logging.getLogger("httpcore").level == logging.WARNING
    assert log_file.parent.exists()


@pytest.mark.integration
def test_resolve_json_output(make_config, capsys):
    path = make_config()
    details = GameDetails(names=["Doom II"], developers=["id Software"])

    with patch("catalogueur.cli.ResolutionEngine") as engine_cls:
        engine = engine_cls.return_value
        engine.resolve = AsyncMock(return_value=details)
        engine.get_cover_image = AsyncMock(return_value=None)
        code = main(["--config", str(path), "resolve", "Doom 2", "--backend", "giantbomb", "--json"])

    assert code == 0
    output = json.loads(capsys.readouterr().out)
    assert output["names"] == ["Doom II"]
    assert output["developers"] == ["id Software"]


@pytest.mark.integration
def test_resolve_without_match_exit_code(make_config, capsys):
    path = make_config()
    with patch("catalogueur.cli.ResolutionEngine") as engine_cls:
        engine_cls.return_value.resolve = AsyncMock(return_value=GameDetails())
        code = main(["--config", str(path), "resolve", "Nothing", "--backend", "gog"])

    assert code == 2
    assert "No match for 'Nothing'" in capsys.readouterr().out


@pytest.mark.integration
def test_giantbomb_without_api_key_is_fatal(make_config, capsys):
    path = make_config({"giantbomb": {"api_key": ""}})
    with respx.mock():
        code = main(["--config", str(path), "resolve", "Doom", "--backend", "giantbomb"])

    assert code == 1
    assert "Fatal error" in capsys.readouterr().err


@pytest.mark.integration
def test_crawl_requires_login(make_config, tmp_path: Path, capsys):
    path = make_config()
    cookie_file = tmp_path / "cookies.txt"
    cookie_file.write_text("session=expired")

    with patch("catalogueur.cli.gamersgate.get_logged_in_user_id", AsyncMock(return_value=None)):
        code = main(["--config", str(path), "crawl", "gamersgate", "--cookie-file", str(cookie_file)])

    assert code == 1
    assert "Not logged in" in capsys.readouterr().err


@pytest.mark.integration
def test_crawl_json_output(make_config, tmp_path: Path, capsys):
    path = make_config()
    cookie_file = tmp_path / "cookies.txt"
    cookie_file.write_text("session=valid")
    records = [ScrapedGameRecord(
        external_id="7001",
        parent_order_id=12345,
        title="Ghost Game",
        download_urls=[DownloadUrl("https://dl/win", "Windows")],
    )]

    with patch("catalogueur.cli.gamersgate.get_logged_in_user_id", AsyncMock(return_value=42)), \
            patch("catalogueur.cli.gamersgate.get_all_games", AsyncMock(return_value=records)):
        code = main(["--config", str(path), "crawl", "gamersgate", "--cookie-file", str(cookie_file), "--json"])

    assert code == 0
    output = json.loads(capsys.readouterr().out)
    assert output[0]["external_id"] == "7001"
    assert output[0]["download_urls"] == [{"url": "https://dl/win", "description": "Windows"}]


@pytest.mark.integration
def test_legacy_games_table(make_config, tmp_path: Path, capsys):
    path = make_config()
    app_state = tmp_path / "app-state.json"
    app_state.write_text(json.dumps({
        "siteData": {"catalog": [{"id": 1, "name": "Bundle", "games": [
            {"game_name": "Mystery Case Files", "installer_uuid": "aaaa-0001", "game_installed_size": "1 GB"},
        ]}]},
        "user": {"giveawayDownloads": [{"product_id": 1}]},
    }))

    code = main(["--config", str(path), "legacy-games", "--app-state", str(app_state)])

    assert code == 0
    assert "Mystery Case Files" in capsys.readouterr().out


@pytest.mark.integration
def test_legacy_games_missing_state(make_config, tmp_path: Path, capsys):
    path = make_config()
    code = main(["--config", str(path), "legacy-games", "--app-state", str(tmp_path / "none.json")])
    assert code == 1
