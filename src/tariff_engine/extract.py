from __future__ import annotations

from tariff_engine.dedupe import keep_last_occurrence
from tariff_engine.diagnostics import Diagnostics
from tariff_engine.headers import TableLocation, locate_table
from tariff_engine.matching import city_part, first_line
from tariff_engine.models import ContainerRates, RateFlags, RawRate
from tariff_engine.variants.base import RateSheetSpec
from tariff_engine.workbook import Sheet, to_iso_date, to_number


def _flag(sheet: Sheet, r: int, col: int | None) -> bool:
    return col is not None and sheet.cell(r, col) is not None


def _read_row(
    sheet: Sheet,
    r: int,
    table: TableLocation,
    spec: RateSheetSpec,
    validity: tuple[str | None, str | None] | None,
) -> RawRate:
    col = table.col
    origin = sheet.text(r, col("origin"))
    if not spec.split_origin_lines:
        origin = city_part(first_line(origin))
    destination = city_part(first_line(sheet.text(r, col("destination"))))
    delivery = city_part(first_line(sheet.text(r, col("delivery"))))

    if validity is None:
        valid_from = to_iso_date(sheet.cell(r, col("valid_from")))
        valid_to = to_iso_date(sheet.cell(r, col("valid_to")))
    else:
        valid_from, valid_to = validity

    return RawRate(
        row_number=r + 1,
        origin=origin,
        destination=destination,
        delivery=delivery,
        rates=ContainerRates(
            rate_20ft=to_number(sheet.cell(r, col("20ft"))),
            rate_40ft=to_number(sheet.cell(r, col("40ft"))),
            rate_40hc=to_number(sheet.cell(r, col("40HC"))),
            rate_45hc=to_number(sheet.cell(r, col("45HC"))),
        ),
        valid_from=valid_from,
        valid_to=valid_to,
        flags=RateFlags(
            shipper_owned=_flag(sheet, r, col("soc")),
            non_reefer=_flag(sheet, r, col("nor")),
            hazardous=_flag(sheet, r, col("haz")),
        ),
        sheet=sheet.name,
    )


def extract_rate_rows(
    sheet: Sheet,
    spec: RateSheetSpec,
    *,
    validity: tuple[str | None, str | None] | None = None,
    diagnostics: Diagnostics | None = None,
) -> list[RawRate]:
    """
    Read the data rows of a rate table.

    `validity` overrides the per-row valid from / valid to columns (contracts
    that carry one period on their cover sheet). Rows without any route text
    are skipped; with stop_at_empty_route the table ends at the first one.
    """
    table = locate_table(sheet, spec.layout, diagnostics)
    if table is None:
        return []

    rows = []
    for r in range(table.data_start, len(sheet)):
        if spec.skip_hidden_rows and sheet.is_hidden(r):
            continue
        origin_text = sheet.text(r, table.col("origin"))
        destination_text = sheet.text(r, table.col("destination"))
        if not origin_text and not destination_text:
            if spec.stop_at_empty_route and (rows or not sheet.is_empty_row(r)):
                break
            continue
        rows.append(_read_row(sheet, r, table, spec, validity))

    if spec.keep_last_occurrence:
        before = len(rows)
        rows = keep_last_occurrence(rows, key=lambda raw: raw.route_text)
        if diagnostics and before != len(rows):
            diagnostics.count("superseded_rows", before - len(rows))

    if diagnostics:
        diagnostics.step(f"Read {len(rows)} rate rows from {sheet.name!r}", summary=f"header row {table.header_row + 1}")
    return rows
