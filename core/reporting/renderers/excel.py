from pathlib import Path
from decimal import Decimal

from openpyxl import Workbook
from openpyxl.styles import Font, Alignment, PatternFill, Border, Side

from core.reporting.contexts import CvrReportContext
from core.services.ledger.helpers import money

MONEY_FORMAT = "#,##0.00"


def _amount(value: Decimal) -> float:
    return float(money(value))


class CvrExcelRenderer:
    def render(self, ctx: CvrReportContext, output_path: Path) -> Path:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        wb = Workbook()

        header_font = Font(bold=True)
        title_font = Font(bold=True, size=14)
        center = Alignment(horizontal="center")
        thin_border = Border(
            left=Side(style="thin"),
            right=Side(style="thin"),
            top=Side(style="thin"),
            bottom=Side(style="thin"),
        )
        header_fill = PatternFill("solid", fgColor="DDDDDD")
        negative_font = Font(color="C00000")

        def header_row(ws, headers):
            for col_index, h in enumerate(headers, start=1):
                cell = ws.cell(row=1, column=col_index, value=h)
                cell.font = header_font
                cell.alignment = center
                cell.fill = header_fill
                cell.border = thin_border

        def money_cell(ws, row_index, col_index, value: Decimal):
            cell = ws.cell(row=row_index, column=col_index, value=_amount(value))
            cell.number_format = MONEY_FORMAT
            cell.border = thin_border
            if value < 0:
                cell.font = negative_font
            return cell

        position = ctx.position

        # ---------------- Summary ----------------
        ws = wb.active
        ws.title = "Summary"

        ws["A1"] = f"Cost Value Reconciliation - {position.project_id}"
        ws["A1"].font = title_font

        row = 3

        def kv(key, value):
            nonlocal row
            ws[f"A{row}"] = key
            ws[f"A{row}"].font = header_font
            ws[f"A{row}"].border = thin_border
            if isinstance(value, Decimal):
                money_cell(ws, row, 2, value)
            else:
                ws[f"B{row}"] = value
                ws[f"B{row}"].border = thin_border
            row += 1

        kv("Tenant", ctx.tenant_id)
        kv("Project ID", position.project_id)
        if ctx.currency:
            kv("Currency", ctx.currency)
        if ctx.generated_at:
            kv("Generated (UTC)", ctx.generated_at.strftime("%Y-%m-%d %H:%M"))

        row += 1
        kv("Budget", position.total_budget)
        kv("Committed", position.total_committed)
        kv("Actual", position.total_actual)
        kv("Variance (budget - committed)", position.total_variance)
        kv("Remaining (budget - actual)", position.total_remaining)

        if ctx.breakdown is not None:
            row += 1
            kv("% committed", float(ctx.breakdown.percent_committed))
            kv("% actual", float(ctx.breakdown.percent_actual))

        ws.column_dimensions["A"].width = 32
        ws.column_dimensions["B"].width = 22

        # ---------------- Packages ----------------
        ws_pkg = wb.create_sheet("Packages")
        header_row(ws_pkg, ["Package", "Budget", "Committed", "Actual", "Variance", "Remaining"])
        for row_index, entry in enumerate(position.entries, start=2):
            ws_pkg.cell(row=row_index, column=1, value=entry.package_name).border = thin_border
            for col_index, value in enumerate(
                (entry.budget, entry.committed, entry.actual, entry.variance, entry.remaining),
                start=2,
            ):
                money_cell(ws_pkg, row_index, col_index, value)

        total_row = len(position.entries) + 2
        ws_pkg.cell(row=total_row, column=1, value="Total").font = header_font
        for col_index, value in enumerate(
            (
                position.total_budget,
                position.total_committed,
                position.total_actual,
                position.total_variance,
                position.total_remaining,
            ),
            start=2,
        ):
            money_cell(ws_pkg, total_row, col_index, value).font = header_font

        ws_pkg.column_dimensions["A"].width = 30
        for col_letter in ("B", "C", "D", "E", "F"):
            ws_pkg.column_dimensions[col_letter].width = 16

        # ---------------- Budget lines ----------------
        ws_lines = wb.create_sheet("Budget Lines")
        header_row(ws_lines, ["Package", "Code", "Name", "Budget"])
        r = 2
        for entry in position.entries:
            for line in entry.budget_lines:
                ws_lines.cell(r, 1, entry.package_name).border = thin_border
                ws_lines.cell(r, 2, line.code).border = thin_border
                ws_lines.cell(r, 3, line.name).border = thin_border
                money_cell(ws_lines, r, 4, line.budget)
                r += 1

        ws_lines.column_dimensions["A"].width = 30
        ws_lines.column_dimensions["B"].width = 14
        ws_lines.column_dimensions["C"].width = 36
        ws_lines.column_dimensions["D"].width = 16

        # ---------------- Sources ----------------
        if ctx.breakdown is not None:
            ws_src = wb.create_sheet("Sources")
            header_row(ws_src, ["Ledger", "Source type", "Documents", "Total"])
            r = 2
            for ledger, rows in (("Commitments", ctx.breakdown.commitments), ("Actuals", ctx.breakdown.actuals)):
                for source_row in rows:
                    ws_src.cell(r, 1, ledger).border = thin_border
                    ws_src.cell(r, 2, source_row.source_type).border = thin_border
                    ws_src.cell(r, 3, source_row.count).border = thin_border
                    money_cell(ws_src, r, 4, source_row.total)
                    r += 1

            for col_letter, width in (("A", 16), ("B", 24), ("C", 12), ("D", 16)):
                ws_src.column_dimensions[col_letter].width = width

        wb.save(output_path)
        return output_path
