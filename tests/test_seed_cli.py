import json

import seed
import slangdict.config as config


def _write_source(directory):
    directory.mkdir()
    (directory / "1.json").write_text(
        json.dumps({"term": "μπρο", "definitions": [{"text": "φίλος"}]}, ensure_ascii=False),
        encoding="utf-8",
    )


def test_seed_success(server_db, tmp_path, monkeypatch, capsys):
    source = tmp_path / "terms"
    _write_source(source)
    monkeypatch.setattr(seed, "init_db", lambda: None)

    exit_code = seed.main(["--source", str(source), "--batch-size", "5"])

    assert exit_code == 0
    assert "1 terms" in capsys.readouterr().out


def test_seed_missing_database_url_exits_with_error(tmp_path, monkeypatch):
    source = tmp_path / "terms"
    _write_source(source)
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.setattr(config, "DATABASE_URL", None)
    monkeypatch.setattr(config, "DB_BACKEND", config.DB_BACKEND)

    assert seed.main(["--source", str(source)]) == 1


def test_seed_missing_source_exits_with_error(server_db, tmp_path, monkeypatch):
    monkeypatch.setattr(seed, "init_db", lambda: None)
    assert seed.main(["--source", str(tmp_path / "absent")]) == 1


def test_seed_exclude_self_references_flag(server_db, tmp_path, monkeypatch, capsys):
    source = tmp_path / "terms"
    source.mkdir()
    (source / "1.json").write_text(
        json.dumps({"term": "γαμάτο", "definitions": [{"text": "Κάτι γαμάτο, πολύ καλό."}]}, ensure_ascii=False),
        encoding="utf-8",
    )
    monkeypatch.setattr(seed, "init_db", lambda: None)

    assert seed.main(["--source", str(source)]) == 0
    assert "1 references" in capsys.readouterr().out

    assert seed.main(["--source", str(source), "--exclude-self-references"]) == 0
    assert "0 references" in capsys.readouterr().out
