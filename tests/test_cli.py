"""Tests for the supplecontrol CLI."""

import json

import pytest

from supplecontrol.cli import main
from supplecontrol.db import ProductStore


@pytest.fixture
def db_path(tmp_path, monkeypatch):
    for var in ("API_KEY", "GEMINI_API_KEY", "ANTHROPIC_API_KEY"):
        monkeypatch.delenv(var, raising=False)
    return str(tmp_path / "cli.db")


def _run(db_path, *args):
    main(["--db", db_path, "--today", "2024-06-01", *args])


def test_no_command_exits(capsys):
    with pytest.raises(SystemExit) as exc:
        main([])
    assert exc.value.code == 1


def test_stats_json_on_seed_data(db_path, capsys):
    _run(db_path, "stats", "--json")
    data = json.loads(capsys.readouterr().out)
    assert data["total"] == 5
    assert (data["expired"], data["warning"], data["good"]) == (1, 2, 2)
    assert len(data["top_categories"]) == 5


def test_stats_text(db_path, capsys):
    _run(db_path, "stats")
    out = capsys.readouterr().out
    assert "Total em estoque: 5" in out
    assert "Vencidos:         1" in out


def test_list_sorted_by_expiration(db_path, capsys):
    _run(db_path, "list", "--json")
    rows = json.loads(capsys.readouterr().out)
    assert [r["id"] for r in rows] == ["1", "2", "4", "3", "5"]
    assert rows[0]["status"] == "EXPIRED"
    assert rows[0]["days"] == -5


def test_list_search(db_path, capsys):
    _run(db_path, "list", "--search", "creatina")
    out = capsys.readouterr().out
    assert "Creatina Monohidratada" in out
    assert "Vence em 15 dias" in out
    assert "Whey Gold" not in out


def test_add_edit_delete(db_path, capsys):
    _run(db_path, "add", "Glutamina", "2024-06-01", "--brand", "Integral",
         "--category", "Aminoácidos", "--quantity", "4")
    out = capsys.readouterr().out
    assert "Produto cadastrado: Glutamina" in out

    with ProductStore(db_path=db_path) as store:
        created = store.list()[-1]
    assert created.name == "Glutamina"
    assert created.quantity == 4

    _run(db_path, "edit", created.id, "--quantity", "9", "--batch", "G7")
    with ProductStore(db_path=db_path) as store:
        edited = store.get(created.id)
    assert (edited.quantity, edited.batch_number) == (9, "G7")

    _run(db_path, "delete", created.id)
    assert "Produto excluído" in capsys.readouterr().out
    with ProductStore(db_path=db_path) as store:
        assert store.get(created.id) is None


def test_add_rejects_bad_date(db_path):
    with pytest.raises(SystemExit):
        _run(db_path, "add", "Whey", "amanhã")


def test_edit_unknown_id(db_path, capsys):
    with pytest.raises(SystemExit):
        _run(db_path, "edit", "nope", "--quantity", "1")
    assert "não encontrado" in capsys.readouterr().err


def test_analyze_without_key(db_path, capsys):
    _run(db_path, "analyze", "--json")
    data = json.loads(capsys.readouterr().out)
    assert len(data["suggestions"]) == 1
    assert data["suggestions"][0]["priority"] == "high"
    assert "não configurada" in data["summary"]
