"""Command-line interface — manage prospects, import and export spreadsheets.

Uso:
  ifood-crm list [--search TEXTO] [--status STATUS]
  ifood-crm add "Pizza Place" --whatsapp 11999999999 --value 500
  ifood-crm edit <id> --instagram @pizzaplace --value 750
  ifood-crm status <id> fechado
  ifood-crm import clientes.xlsx
  ifood-crm export --output ./backups
"""

import argparse
import sys
from typing import List, Optional

import structlog

from ifood_crm.application.services import client_service
from ifood_crm.application.services.client_export_service import export_clients
from ifood_crm.application.services.client_import_service import ClientImporter
from ifood_crm.application.services.date_parser import format_local_date
from ifood_crm.core.exceptions import AppError, error_payload
from ifood_crm.core.logging import configure_logging
from ifood_crm.domain.models.client import ClientRecord
from ifood_crm.domain.repositories.client_repository import ClientRepository
from ifood_crm.domain.schemas.client import ClientFilter
from ifood_crm.domain.status import STATUS_LABELS, ClientStatus, label_of
from ifood_crm.interfaces.deps import get_client_repository

logger = structlog.get_logger(__name__)


def parse_status(value: str) -> ClientStatus:
    """Accept either the internal key (closed) or the label (Fechado), any case."""
    key = value.strip().lower()
    for status in ClientStatus:
        if status.value == key:
            return status
    for status, label in STATUS_LABELS.items():
        if label.lower() == key:
            return status
    choices = ", ".join(s.value for s in ClientStatus)
    raise argparse.ArgumentTypeError(f"status inválido: {value!r} (use um de: {choices})")


def _format_value(value: Optional[float]) -> str:
    if value is None:
        return "-"
    # pt-BR: 1.234,56
    return "R$ " + f"{value:,.2f}".replace(",", "X").replace(".", ",").replace("X", ".")


def _print_client_line(client: ClientRecord) -> None:
    print(f"{client.id}  {client.name:<30}  {label_of(client.status):<17}  {_format_value(client.value)}")


def _print_client_details(client: ClientRecord) -> None:
    print(f"ID:                 {client.id}")
    print(f"Nome:               {client.name}")
    print(f"Status:             {label_of(client.status)}")
    print(f"Link iFood:         {client.ifood_link or '-'}")
    print(f"Link Google:        {client.google_link or '-'}")
    print(f"Instagram:          {client.instagram_link or '-'}")
    print(f"WhatsApp:           {client_service.whatsapp_url(client.whatsapp_number) or '-'}")
    if client.status == ClientStatus.CLOSED:
        print(f"Forma de Pagamento: {client.payment_method or 'Forma de pagamento não informada'}")
    print(f"Valor do Projeto:   {_format_value(client.value)}")
    print(f"Interesse:          {client_service.interest_level_label(client.interest_level)}")
    print(f"Observações:        {client.notes or '-'}")
    print(f"Criado em:          {format_local_date(client.created_at)}")
    print(f"Atualizado em:      {format_local_date(client.updated_at)}")


def cmd_list(repo: ClientRepository, args) -> int:
    clients = client_service.search_clients(repo, ClientFilter(search=args.search, status=args.status))
    if not clients:
        print("Nenhum cliente cadastrado" if len(repo.list()) == 0 else "Nenhum cliente encontrado")
        return 0
    for client in clients:
        _print_client_line(client)
    return 0


def cmd_show(repo: ClientRepository, args) -> int:
    client = repo.get_by_id(args.id)
    if client is None:
        print(f"Cliente não encontrado: {args.id}", file=sys.stderr)
        return 1
    _print_client_details(client)
    return 0


def cmd_add(repo: ClientRepository, args) -> int:
    client = client_service.add_client(
        repo,
        name=args.name,
        ifood_link=args.ifood,
        google_link=args.google,
        instagram_link=args.instagram,
        whatsapp_number=args.whatsapp,
        value=args.value,
        notes=args.notes,
    )
    print(f"Cliente adicionado: {client.id}")
    return 0


def cmd_edit(repo: ClientRepository, args) -> int:
    client = client_service.edit_client(
        repo,
        args.id,
        name=args.name,
        ifood_link=args.ifood,
        google_link=args.google,
        instagram_link=args.instagram,
        whatsapp_number=args.whatsapp,
        value=args.value,
    )
    print(f"Cliente atualizado: {client.name}")
    return 0


def cmd_status(repo: ClientRepository, args) -> int:
    client = client_service.change_status(repo, args.id, args.status)
    print(f"{client.name}: {label_of(client.status)}")
    return 0


def cmd_notes(repo: ClientRepository, args) -> int:
    client_service.save_notes(repo, args.id, args.text)
    print("Observações salvas")
    return 0


def cmd_payment(repo: ClientRepository, args) -> int:
    client_service.save_payment_method(repo, args.id, args.method)
    print("Forma de pagamento salva")
    return 0


def cmd_interest(repo: ClientRepository, args) -> int:
    client = client_service.set_interest_level(repo, args.id, args.level)
    print(f"{client.name}: {client_service.interest_level_label(client.interest_level)}")
    return 0


def cmd_delete(repo: ClientRepository, args) -> int:
    client = client_service.delete_client(repo, args.id)
    print(f"Cliente excluído: {client.name}")
    return 0


def cmd_import(repo: ClientRepository, args) -> int:
    result = ClientImporter(repo).import_file(args.file)
    if not result.success:
        print(f"Erro: {result.error}", file=sys.stderr)
        return 1
    print(result.message)
    return 0


def cmd_export(repo: ClientRepository, args) -> int:
    path = export_clients(repo, args.output)
    print(f"Planilha exportada: {path}")
    return 0


def cmd_stats(repo: ClientRepository, args) -> int:
    stats = client_service.get_client_stats(repo)
    print(f"Total de clientes: {stats.total_clients}")
    print(f"Contatados:        {stats.contacted}")
    print(f"Fechados:          {stats.closed}")
    print(f"Receita total:     {_format_value(stats.total_revenue)}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ifood-crm", description="Gestão de clientes iFood")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("list", help="Listar clientes")
    p.add_argument("--search", help="Buscar por nome")
    p.add_argument("--status", type=parse_status, help="Filtrar por status")
    p.set_defaults(func=cmd_list)

    p = sub.add_parser("show", help="Detalhes de um cliente")
    p.add_argument("id")
    p.set_defaults(func=cmd_show)

    p = sub.add_parser("add", help="Adicionar cliente")
    p.add_argument("name")
    p.add_argument("--ifood", default="", help="Link iFood")
    p.add_argument("--google", default="", help="Link Google")
    p.add_argument("--instagram", default="", help="Instagram")
    p.add_argument("--whatsapp", default="", help="WhatsApp")
    p.add_argument("--value", type=float, default=None, help="Valor do projeto")
    p.add_argument("--notes", default="", help="Observações")
    p.set_defaults(func=cmd_add)

    p = sub.add_parser("edit", help="Editar dados do cliente")
    p.add_argument("id")
    p.add_argument("--name", help="Nome")
    p.add_argument("--ifood", help="Link iFood")
    p.add_argument("--google", help="Link Google")
    p.add_argument("--instagram", help="Instagram")
    p.add_argument("--whatsapp", help="WhatsApp")
    p.add_argument("--value", type=float, help="Valor do projeto")
    p.set_defaults(func=cmd_edit)

    p = sub.add_parser("status", help="Alterar status")
    p.add_argument("id")
    p.add_argument("status", type=parse_status)
    p.set_defaults(func=cmd_status)

    p = sub.add_parser("notes", help="Salvar observações")
    p.add_argument("id")
    p.add_argument("text")
    p.set_defaults(func=cmd_notes)

    p = sub.add_parser("payment", help="Salvar forma de pagamento")
    p.add_argument("id")
    p.add_argument("method", help=f"Ex.: {', '.join(client_service.PAYMENT_METHODS)}")
    p.set_defaults(func=cmd_payment)

    p = sub.add_parser("interest", help="Nível de interesse (0-5)")
    p.add_argument("id")
    p.add_argument("level", type=int)
    p.set_defaults(func=cmd_interest)

    p = sub.add_parser("delete", help="Excluir cliente")
    p.add_argument("id")
    p.set_defaults(func=cmd_delete)

    p = sub.add_parser("import", help="Importar planilha (.xlsx ou .csv)")
    p.add_argument("file")
    p.set_defaults(func=cmd_import)

    p = sub.add_parser("export", help="Exportar planilha .xlsx")
    p.add_argument("--output", help="Diretório de saída")
    p.set_defaults(func=cmd_export)

    p = sub.add_parser("stats", help="Resumo do funil")
    p.set_defaults(func=cmd_stats)

    return parser


def main(argv: Optional[List[str]] = None, repo: Optional[ClientRepository] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging()
    repo = repo if repo is not None else get_client_repository()

    try:
        return args.func(repo, args)
    except AppError as e:
        logger.warning("Command failed", command=args.command, **error_payload(e))
        print(f"Erro: {e.message}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Erro: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
