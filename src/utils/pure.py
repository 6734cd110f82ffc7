from decimal import Decimal
from typing import List, Literal, Optional

from utils import config
from utils.i18n import current_lang, t

CURRENCY_SYMBOLS = {"ar": "ر.س", "en": "SAR"}


def generate_markdown_table(
    headers: Optional[List[str]],
    rows: List[List[str]],
    aligns: Optional[List[Literal["l", "c", "r"]]] = None,
) -> str:
    """
    Generate a Markdown table.

    Args:
        headers: List of column headers, or None to use first row as headers.
        rows: List of rows, each a list of strings.
        aligns: List of alignments ('l', 'c', 'r') for each column.
                Defaults to all center ('c').

    Returns:
        str: Markdown formatted table.
    """
    if not rows:
        return ""

    # If no headers, take the first row as header and remove it from rows
    if not headers:
        headers, rows = rows[0], rows[1:]

    headers = [_cell(h) for h in headers]
    rows = [[_cell(c) for c in row] for row in rows]

    num_cols = len(headers)
    if aligns is None:
        aligns = ["c"] * num_cols
    elif len(aligns) != num_cols:
        raise ValueError("Length of aligns must match number of headers.")

    align_map = {
        "l": ":---",
        "c": ":---:",
        "r": "---:",
    }

    header_line = "| " + " | ".join(headers) + " |"
    align_line = "| " + " | ".join(align_map[a] for a in aligns) + " |"
    row_lines = ["| " + " | ".join(row) + " |" for row in rows]

    return "\n".join([header_line, align_line, *row_lines])


def _cell(value) -> str:
    # pipes and newlines would break the row
    return str(value).replace("|", "\\|").replace("\n", " ")


def format_price(amount, lang: Optional[str] = None) -> str:
    """Two-decimal amount with the store currency, e.g. '4,999.00 ر.س'."""
    lang = current_lang(lang)
    symbol = CURRENCY_SYMBOLS.get(lang, config.CURRENCY)
    return f"{Decimal(amount):,.2f} {symbol}"


def status_label(status, lang: Optional[str] = None) -> str:
    value = getattr(status, "value", status)
    return t(f"status.{value}", lang)


def role_label(role, lang: Optional[str] = None) -> str:
    value = getattr(role, "value", role)
    return t(f"role.{value}", lang)


def order_markdown(order, with_owner: bool = False, lang: Optional[str] = None) -> str:
    """Markdown detail of an order: header, item table and total."""
    if order is None:
        return f"### {t('ui.select_order', lang)}"

    header = (
        f"### {t('ui.order', lang)} #{order.ono}\n"
        f"{t('ui.date', lang)}: {order.created_at:%Y-%m-%d %H:%M}  \n"
        f"{t('ui.status', lang)}: **{status_label(order.status, lang)}**  \n"
        f"{t('ui.payment_method', lang)}: {t('payment.' + order.payment_method, lang)}  \n"
    )
    if with_owner and order.owner_name:
        header += f"{t('ui.customer', lang)}: {order.owner_name} ({order.owner_email})  \n"

    rows = [
        [
            item.product_name,
            item.qty,
            format_price(item.price, lang),
            format_price(item.line_total, lang),
        ]
        for item in order.items
    ]
    table = generate_markdown_table(
        [
            t("ui.product", lang),
            t("ui.quantity", lang),
            t("ui.unit_price", lang),
            t("ui.line_total", lang),
        ],
        rows,
        ["l", "r", "r", "r"],
    )
    footer = f"\n\n**{t('ui.total', lang)}:** {format_price(order.total, lang)}"
    return header + "\n" + table + footer
