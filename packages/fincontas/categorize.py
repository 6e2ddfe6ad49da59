"""Rule-based transaction categorization.

Two entry points:

- :func:`categorize_text` assigns one of the built-in Portuguese categories
  from keywords found in a transaction's description or merchant name.
- :func:`map_pluggy_category` maps an aggregator transaction (with its
  provider category label) onto the same category set.

Both fall back to :data:`DEFAULT_CATEGORY`.
"""

from __future__ import annotations

import unicodedata
from collections.abc import Mapping
from typing import Any

DEFAULT_CATEGORY = "Outros"

# Ordered: the first rule with a matching keyword wins.
KEYWORD_RULES: tuple[tuple[tuple[str, ...], str], ...] = (
    (("uber", "taxi", "transporte", "metro", "onibus"), "Transporte"),
    (("ifood", "restaurante", "lanchonete", "comida", "alimentacao"), "Alimentação"),
    (("shopping", "loja", "magazine", "mercado"), "Compras"),
    (("cinema", "teatro", "entretenimento", "lazer"), "Entretenimento"),
    (("farmacia", "hospital", "medico", "saude"), "Saúde"),
    (("energia", "agua", "telefone", "internet", "conta"), "Contas e Serviços"),
)

# Aggregator category labels (lower-cased, accents stripped) by prefix.
_PROVIDER_CATEGORY_PREFIXES: tuple[tuple[str, str], ...] = (
    ("transport", "Transporte"),
    ("taxi", "Transporte"),
    ("automotive", "Transporte"),
    ("food", "Alimentação"),
    ("eating out", "Alimentação"),
    ("groceries", "Alimentação"),
    ("restaurant", "Alimentação"),
    ("shopping", "Compras"),
    ("online shopping", "Compras"),
    ("electronics", "Compras"),
    ("clothing", "Compras"),
    ("leisure", "Entretenimento"),
    ("entertainment", "Entretenimento"),
    ("gaming", "Entretenimento"),
    ("streaming", "Entretenimento"),
    ("health", "Saúde"),
    ("pharmacy", "Saúde"),
    ("wellness", "Saúde"),
    ("bills", "Contas e Serviços"),
    ("utilities", "Contas e Serviços"),
    ("telecommunications", "Contas e Serviços"),
    ("services", "Contas e Serviços"),
    ("housing", "Contas e Serviços"),
)


def _fold(text: str) -> str:
    decomposed = unicodedata.normalize("NFKD", text.lower())
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def categorize_text(description: str | None, merchant_name: str | None = None) -> str:
    desc = (description or "").lower()
    merchant = (merchant_name or "").lower()
    for keywords, category in KEYWORD_RULES:
        if any(k in desc or k in merchant for k in keywords):
            return category
    return DEFAULT_CATEGORY


def map_pluggy_category(transaction: Mapping[str, Any]) -> str:
    label = transaction.get("category")
    if isinstance(label, str) and label.strip():
        folded = _fold(label.strip())
        for prefix, category in _PROVIDER_CATEGORY_PREFIXES:
            if folded.startswith(prefix):
                return category

    merchant = transaction.get("merchant")
    merchant_name = merchant.get("name") if isinstance(merchant, Mapping) else None
    description = transaction.get("description")
    return categorize_text(
        _fold(description) if isinstance(description, str) else None,
        _fold(merchant_name) if isinstance(merchant_name, str) else None,
    )
