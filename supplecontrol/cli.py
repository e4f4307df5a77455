"""CLI entry point for SuppleControl."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import replace
from datetime import date

from dotenv import load_dotenv

from .advisor import create_backend
from .advisor.service import InventoryAdvisor
from .config import load_config
from .db import ProductStore
from .expiry import classify_expiry, days_until_expiry, parse_expiration
from .models import ExpiryStatus, ProductCategory
from .stats import compute_stats, days_remaining_label, search_products, sort_by_expiration

_STATUS_LABELS = {
    ExpiryStatus.EXPIRED: "Vencido",
    ExpiryStatus.WARNING: "Atenção",
    ExpiryStatus.GOOD: "OK",
}

_PRIORITY_LABELS = {"high": "ALTA", "medium": "MÉDIA", "low": "BAIXA"}


def _iso_date(value: str) -> date:
    parsed = parse_expiration(value)
    if parsed is None:
        raise argparse.ArgumentTypeError(f"data inválida: {value!r} (use AAAA-MM-DD)")
    return parsed


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="supplecontrol",
        description="Controle de validade de suplementos com consultor IA",
    )
    parser.add_argument(
        "--config", "-c", type=str, default=None, help="Arquivo de configuração (TOML)"
    )
    parser.add_argument(
        "--db", type=str, default=None, help="Caminho do banco SQLite"
    )
    parser.add_argument(
        "--today", type=_iso_date, default=None, help="Data de referência (AAAA-MM-DD)"
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Log detalhado")

    sub = parser.add_subparsers(dest="command")

    # list
    list_parser = sub.add_parser("list", help="Listar produtos por validade")
    list_parser.add_argument("--search", "-s", type=str, default="", help="Filtrar por nome, marca ou categoria")
    list_parser.add_argument("--json", action="store_true", help="Saída em JSON")

    # add / edit share the product fields
    categories = [c.value for c in ProductCategory]

    add_parser = sub.add_parser("add", help="Cadastrar produto")
    add_parser.add_argument("name", type=str)
    add_parser.add_argument("expiration_date", type=_iso_date)
    add_parser.add_argument("--brand", type=str, default="")
    add_parser.add_argument("--category", type=str, default=ProductCategory.WHEY_PROTEIN.value, choices=categories)
    add_parser.add_argument("--batch", type=str, default="")
    add_parser.add_argument("--quantity", "-q", type=int, default=0)

    edit_parser = sub.add_parser("edit", help="Editar produto")
    edit_parser.add_argument("id", type=str)
    edit_parser.add_argument("--name", type=str)
    edit_parser.add_argument("--expiration-date", type=_iso_date)
    edit_parser.add_argument("--brand", type=str)
    edit_parser.add_argument("--category", type=str, choices=categories)
    edit_parser.add_argument("--batch", type=str)
    edit_parser.add_argument("--quantity", "-q", type=int)

    delete_parser = sub.add_parser("delete", help="Excluir produto")
    delete_parser.add_argument("id", type=str)

    stats_parser = sub.add_parser("stats", help="Resumo do estoque")
    stats_parser.add_argument("--json", action="store_true", help="Saída em JSON")

    analyze_parser = sub.add_parser("analyze", help="Consultor IA para itens em risco")
    analyze_parser.add_argument("--json", action="store_true", help="Saída em JSON")

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    load_dotenv()
    config = load_config(args.config)

    store = ProductStore(
        db_path=args.db or config.storage.path,
        key=config.storage.key,
        today=args.today,
    )
    try:
        match args.command:
            case "list":
                _cmd_list(store, args)
            case "add":
                _cmd_add(store, args)
            case "edit":
                _cmd_edit(store, args)
            case "delete":
                _cmd_delete(store, args)
            case "stats":
                _cmd_stats(store, args)
            case "analyze":
                asyncio.run(_cmd_analyze(config, store, args))
    finally:
        store.close()


def _cmd_list(store: ProductStore, args) -> None:
    products = sort_by_expiration(search_products(store.list(), args.search))

    if args.json:
        data = []
        for p in products:
            row = p.to_dict()
            row["status"] = classify_expiry(p.expiration_date, args.today).value
            row["days"] = days_until_expiry(p.expiration_date, args.today)
            data.append(row)
        print(json.dumps(data, ensure_ascii=False, indent=2))
        return

    if not products:
        print("Nenhum produto encontrado.")
        return
    for p in products:
        days = days_until_expiry(p.expiration_date, args.today)
        status = classify_expiry(p.expiration_date, args.today)
        print(
            f"  [{_STATUS_LABELS[status]:<7}] {p.name} ({p.brand}) "
            f"{p.category.value}  lote {p.batch_number or '-'}  qtd {p.quantity}  "
            f"{p.expiration_date}  {days_remaining_label(days)}  id={p.id}"
        )


def _cmd_add(store: ProductStore, args) -> None:
    try:
        product = store.create(
            args.name,
            args.expiration_date,
            brand=args.brand,
            category=args.category,
            batch_number=args.batch,
            quantity=args.quantity,
        )
    except ValueError as e:
        print(f"Erro: {e}", file=sys.stderr)
        sys.exit(1)
    print(f"Produto cadastrado: {product.name} (id={product.id})")


def _cmd_edit(store: ProductStore, args) -> None:
    existing = store.get(args.id)
    if existing is None:
        print(f"Produto não encontrado: {args.id}", file=sys.stderr)
        sys.exit(1)
    product = replace(existing)

    if args.name is not None:
        product.name = args.name
    if args.expiration_date is not None:
        product.expiration_date = args.expiration_date.isoformat()
    if args.brand is not None:
        product.brand = args.brand
    if args.category is not None:
        product.category = ProductCategory.coerce(args.category)
    if args.batch is not None:
        product.batch_number = args.batch
    if args.quantity is not None:
        product.quantity = args.quantity

    try:
        product = store.update(product)
    except ValueError as e:
        print(f"Erro: {e}", file=sys.stderr)
        sys.exit(1)
    print(f"Produto atualizado: {product.name}")


def _cmd_delete(store: ProductStore, args) -> None:
    if store.delete(args.id):
        print(f"Produto excluído: {args.id}")
    else:
        print(f"Produto não encontrado: {args.id}")


def _cmd_stats(store: ProductStore, args) -> None:
    stats = compute_stats(store.list(), args.today)

    if args.json:
        print(json.dumps(stats.to_dict(), ensure_ascii=False, indent=2))
        return

    print(f"Total em estoque: {stats.total}")
    print(f"Vencidos:         {stats.expired}")
    print(f"Vencem em breve:  {stats.warning}")
    print(f"Regulares:        {stats.good}")
    if stats.unresolved:
        print(f"Data inválida:    {stats.unresolved}")
    print("\nCategorias:")
    for name, count in stats.top_categories():
        print(f"  {name:<20} {count}")


async def _cmd_analyze(config, store: ProductStore, args) -> None:
    try:
        backend = create_backend(config)
    except ValueError as e:
        print(f"Erro: {e}", file=sys.stderr)
        sys.exit(1)

    advisor = InventoryAdvisor(backend, max_items=config.advisor.max_items)
    if not args.json:
        print("Analisando estoque...")
    result = await advisor.analyze(store.list(), today=args.today)

    if args.json:
        print(json.dumps(result.to_dict(), ensure_ascii=False, indent=2))
        return

    print()
    print(result.summary)
    for s in result.suggestions:
        print(f"\n[{_PRIORITY_LABELS.get(s.priority, s.priority)}] {s.title}")
        print(f"  {s.description}")
