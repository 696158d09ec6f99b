import asyncio
import io

import pandas as pd
import pytest

from ifood_crm.application.services import client_import_service
from ifood_crm.application.services.client_import_service import (
    INVALID_FILE_MESSAGE,
    ClientImporter,
    decode_row,
    merge_import,
    merge_rows,
)
from ifood_crm.core.exceptions import ImportInProgressError
from ifood_crm.domain.status import ClientStatus

from conftest import local, make_client

NOW = local(2024, 6, 10, 14)


def test_decode_row_applies_defaults() -> None:
    row = decode_row({"Nome": "Sushi Bar"}, 3, NOW)

    assert row.id == "temp-3"
    assert row.name == "Sushi Bar"
    assert row.ifood_link == ""
    assert row.notes == ""
    assert row.status == ClientStatus.NOT_CONTACTED
    assert row.value is None
    assert row.interest_level is None
    assert row.created_at == NOW
    assert row.updated_at == NOW


def test_decode_row_reads_every_column() -> None:
    row = decode_row(
        {
            "Nome": " Burger House ",
            "Link iFood": "https://ifood.com.br/burger",
            "Link Google": "https://g.page/burger",
            "Instagram": "@burger",
            "WhatsApp": 11987654321,
            "Status": "Proposta Enviada",
            "Forma de Pagamento": "PIX",
            "Observações": "Ligar sexta",
            "Valor do Projeto": "R$ 1.234,56",
            "Nível de Interesse": 4,
            "Criado em": "02/03/2024",
            "Atualizado em": "05/03/2024",
        },
        0,
        NOW,
    )

    assert row.name == "Burger House"
    assert row.whatsapp_number == "11987654321"
    assert row.status == ClientStatus.PROPOSAL_SENT
    assert row.payment_method == "PIX"
    assert row.value == pytest.approx(1234.56)
    assert row.interest_level == 4
    assert row.created_at == local(2024, 3, 2)
    assert row.updated_at == local(2024, 3, 5)


def test_decode_row_headers_are_case_insensitive() -> None:
    row = decode_row({" nome ": "Açaí", "STATUS": "Contatado"}, 0, NOW)

    assert row.name == "Açaí"
    assert row.status == ClientStatus.CONTACTED


@pytest.mark.parametrize("label", ["", "Qualquer", None])
def test_decode_row_unknown_status_defaults(label) -> None:
    assert decode_row({"Nome": "X", "Status": label}, 0, NOW).status == ClientStatus.NOT_CONTACTED


@pytest.mark.parametrize("cell", ["-10", "abc", "#REF!", None, "NaN", "Infinity", "1e400", float("nan"), float("inf")])
def test_decode_row_rejects_bad_values(cell) -> None:
    assert decode_row({"Nome": "X", "Valor do Projeto": cell}, 0, NOW).value is None


@pytest.mark.parametrize("cell", [6, -1, 2.5, "muito", "NaN", float("inf")])
def test_decode_row_rejects_bad_interest(cell) -> None:
    assert decode_row({"Nome": "X", "Nível de Interesse": cell}, 0, NOW).interest_level is None


def test_decode_row_unparseable_dates_default_to_now() -> None:
    row = decode_row({"Nome": "X", "Criado em": "ontem", "Atualizado em": ""}, 0, NOW)

    assert row.created_at == NOW
    assert row.updated_at == NOW


def test_decode_row_missing_name_is_kept_empty() -> None:
    assert decode_row({"Status": "Fechado"}, 0, NOW).name == ""


def test_merge_updates_matching_client_in_place() -> None:
    existing = make_client("Pizza Place", "A1", notes="antigo", interest_level=3)
    row = decode_row({"Nome": "PIZZA place", "Status": "Respondeu"}, 0, NOW)

    outcome = merge_rows([existing], [row], NOW)

    assert (outcome.inserted_count, outcome.updated_count) == (0, 1)
    assert len(outcome.clients) == 1
    merged = outcome.clients[0]
    assert merged.id == "A1"
    assert merged.created_at == existing.created_at
    assert merged.updated_at == NOW
    assert merged.name == "PIZZA place"
    assert merged.status == ClientStatus.RESPONDED
    # every non-provenance field comes from the row
    assert merged.notes == ""
    assert merged.interest_level is None


def test_merge_appends_unknown_client() -> None:
    existing = make_client("Pizza Place", "A1")
    row = decode_row({"Nome": "Taco Shop", "Criado em": "01/02/2024"}, 0, NOW)

    outcome = merge_rows([existing], [row], NOW)

    assert (outcome.inserted_count, outcome.updated_count) == (1, 0)
    assert [c.name for c in outcome.clients] == ["Pizza Place", "Taco Shop"]
    added = outcome.clients[1]
    assert added.id not in ("A1", "temp-0")
    assert outcome.inserted_ids == [added.id]
    assert added.created_at == local(2024, 2, 1)


def test_merge_same_name_twice_last_row_wins() -> None:
    rows = [
        decode_row({"Nome": "Taco Shop", "Status": "Contatado"}, 0, NOW),
        decode_row({"Nome": "taco shop", "Status": "Recusado"}, 1, NOW),
    ]

    outcome = merge_rows([], rows, NOW)

    assert (outcome.inserted_count, outcome.updated_count) == (1, 1)
    assert len(outcome.clients) == 1
    assert outcome.clients[0].status == ClientStatus.REJECTED


def test_merge_matches_first_of_duplicate_names() -> None:
    first = make_client("Dup", "D1")
    second = make_client("dup", "D2")
    row = decode_row({"Nome": "DUP", "Observações": "novo"}, 0, NOW)

    outcome = merge_rows([first, second], [row], NOW)

    assert outcome.clients[0].notes == "novo"
    assert outcome.clients[1].notes == ""


def test_merge_empty_names_accumulate() -> None:
    rows = [decode_row({"Status": "Fechado"}, 0, NOW)]

    first = merge_rows([], rows, NOW)
    second = merge_rows(first.clients, rows, NOW)

    assert second.inserted_count == 1
    assert second.updated_count == 0
    assert len(second.clients) == 2
    assert len({c.id for c in second.clients}) == 2


def test_merge_does_not_mutate_current() -> None:
    current = [make_client("Pizza Place", "A1")]

    merge_rows(current, [decode_row({"Nome": "Novo"}, 0, NOW)], NOW)

    assert [c.id for c in current] == ["A1"]


def test_merge_import_pizza_place_scenario(xlsx_bytes) -> None:
    existing = make_client("Pizza Place", "A1")
    data = xlsx_bytes([{"Nome": "Pizza Place", "Status": "Fechado", "Valor do Projeto": 500}])

    result = merge_import(data, [existing], now=NOW)

    assert result.success
    assert len(result.clients) == 1
    client = result.clients[0]
    assert client.id == "A1"
    assert client.created_at == local(2024, 1, 1)
    assert client.status == ClientStatus.CLOSED
    assert client.value == 500
    assert client.updated_at == NOW
    assert (result.inserted_count, result.updated_count) == (0, 1)
    assert result.message == "Importação concluída: 0 novos clientes adicionados, 1 clientes atualizados."


def test_merge_import_corrupt_bytes_fails() -> None:
    current = [make_client("Pizza Place", "A1")]

    result = merge_import(b"definitely not a workbook", current, now=NOW)

    assert not result.success
    assert result.error == INVALID_FILE_MESSAGE
    assert result.clients == []
    assert [c.id for c in current] == ["A1"]


def test_importer_commits_to_repository(repo, store, xlsx_bytes) -> None:
    repo.replace_all([make_client("Pizza Place", "A1")])
    data = xlsx_bytes([
        {"Nome": "Pizza Place", "Status": "Contatado"},
        {"Nome": "Taco Shop", "Status": "Respondeu"},
    ])

    result = ClientImporter(repo).import_bytes(data, filename="clientes.xlsx")

    assert result.success
    assert [c.name for c in repo.list()] == ["Pizza Place", "Taco Shop"]
    assert repo.get_by_id("A1").status == ClientStatus.CONTACTED
    assert repo.get_by_id("A1").updated_at > local(2024, 1, 1)
    assert "Taco Shop" in store.get("ifood_clients")


def test_importer_leaves_repository_untouched_on_failure(repo, store) -> None:
    repo.replace_all([make_client("Pizza Place", "A1")])
    before = store.get("ifood_clients")

    result = ClientImporter(repo).import_bytes(b"\x00\x01\x02")

    assert not result.success
    assert store.get("ifood_clients") == before
    assert [c.id for c in repo.list()] == ["A1"]


def test_importer_reads_csv(repo, tmp_path) -> None:
    path = tmp_path / "clientes.csv"
    path.write_text("Nome;Status;Valor do Projeto\nCafé Central;Fechado;1.500,00\n", encoding="utf-8")

    result = ClientImporter(repo).import_file(path)

    assert result.success
    client = repo.find_by_name("café central")
    assert client.status == ClientStatus.CLOSED
    assert client.value == 1500.0


def test_importer_rejects_concurrent_import(repo, xlsx_bytes) -> None:
    importer = ClientImporter(repo)
    importer._running = True
    try:
        assert importer.busy
        with pytest.raises(ImportInProgressError):
            importer.import_bytes(xlsx_bytes([{"Nome": "X"}]))
    finally:
        importer._running = False

    assert not importer.busy
    assert importer.import_bytes(xlsx_bytes([{"Nome": "X"}])).success


def test_importer_releases_busy_flag_after_failure(repo) -> None:
    importer = ClientImporter(repo)

    importer.import_bytes(b"broken")

    assert not importer.busy


def test_async_import(repo, xlsx_bytes) -> None:
    importer = ClientImporter(repo)
    data = xlsx_bytes([{"Nome": "Async Burger", "Status": "Fechado"}])

    result = asyncio.run(importer.aimport_bytes(data))

    assert result.success
    assert result.inserted_count == 1
    assert repo.find_by_name("async burger").status == ClientStatus.CLOSED


def test_async_import_corrupt_bytes(repo) -> None:
    result = asyncio.run(ClientImporter(repo).aimport_bytes(b"nope"))

    assert not result.success
    assert result.error == INVALID_FILE_MESSAGE
    assert repo.list() == []


def test_merge_import_csv_with_non_numeric_value_is_not_fatal() -> None:
    data = "Nome,Valor do Projeto\nPizza Place,NaN\nTaco Shop,Infinity\nSushi Bar,\"1.200,00\"\n".encode("utf-8")

    result = merge_import(data, [make_client("Pizza Place", "A1", value=300.0)], NOW, filename="clientes.csv")

    assert result.success
    assert (result.inserted_count, result.updated_count) == (2, 1)
    values = {c.name: c.value for c in result.clients}
    assert values == {"Pizza Place": None, "Taco Shop": None, "Sushi Bar": 1200.0}


def test_async_import_blocks_sync_import_while_decoding(repo, xlsx_bytes, monkeypatch) -> None:
    importer = ClientImporter(repo)
    data = xlsx_bytes([{"Nome": "Async Burger"}])
    real_read_table = client_import_service.read_table
    seen = []

    def read_table_during_import(payload, filename=None):
        seen.append(importer.busy)
        with pytest.raises(ImportInProgressError):
            importer.import_bytes(payload)
        return real_read_table(payload, filename)

    monkeypatch.setattr(client_import_service, "read_table", read_table_during_import)

    result = asyncio.run(importer.aimport_bytes(data))

    assert seen == [True]
    assert result.success
    assert not importer.busy
    assert [c.name for c in repo.list()] == ["Async Burger"]


def test_merge_import_ignores_extra_sheets() -> None:
    buf = io.BytesIO()
    with pd.ExcelWriter(buf, engine="openpyxl") as writer:
        pd.DataFrame([{"Nome": "Pizza Place"}]).to_excel(writer, sheet_name="Clientes", index=False)
        pd.DataFrame([{"Data": "01/01/2024", "Nota": "ligar"}]).to_excel(writer, sheet_name="Notas", index=False)

    result = merge_import(buf.getvalue(), [make_client("Pizza Place", "A1")], NOW)

    assert (result.inserted_count, result.updated_count) == (0, 1)
    assert [c.id for c in result.clients] == ["A1"]
