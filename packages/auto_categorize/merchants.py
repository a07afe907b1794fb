"""Static merchant keyword table.

The table is an ordered, immutable tuple built once at import time and passed
into the matcher; order is significant because the first keyword found in a
description wins. Keywords are matched as lower-cased substrings, so short
keywords (``bp``, ``nos``) match inside longer words as well.

Names refer to the seeded two-level taxonomy (see
``ingest/seeds/taxonomy.v1.json``).
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class MerchantRule:
    keyword: str
    major_category: str
    category: str
    sub_category: str | None = None


def _m(keyword: str, major: str, category: str, sub: str | None = None) -> MerchantRule:
    return MerchantRule(keyword, major, category, sub)


_FIXED = "Custos Fixos"
_VARIABLE = "Custos Variaveis"
_EXTRA = "Rendimento Extra"

MERCHANT_RULES: tuple[MerchantRule, ...] = (
    # Supermarkets
    _m("continente", _FIXED, "Alimentação", "Supermercado"),
    _m("pingo doce", _FIXED, "Alimentação", "Supermercado"),
    _m("mercadona", _FIXED, "Alimentação", "Supermercado"),
    _m("auchan", _FIXED, "Alimentação", "Supermercado"),
    _m("lidl", _FIXED, "Alimentação", "Supermercado"),
    _m("intermarche", _FIXED, "Alimentação", "Supermercado"),
    # Fuel & transport
    _m("galp", _FIXED, "Transportes", "Carro Combustivel"),
    _m("repsol", _FIXED, "Transportes", "Carro Combustivel"),
    _m("bp", _FIXED, "Transportes", "Carro Combustivel"),
    _m("cepsa", _FIXED, "Transportes", "Carro Combustivel"),
    _m("via verde", _FIXED, "Transportes", "Carro Via Verde"),
    # Restaurants & takeaway
    _m("uber eats", _VARIABLE, "Alimentação", "Take Away"),
    _m("glovo", _VARIABLE, "Alimentação", "Take Away"),
    _m("bolt food", _VARIABLE, "Alimentação", "Take Away"),
    _m("mcdonald", _VARIABLE, "Alimentação", "Take Away"),
    _m("pizza hut", _VARIABLE, "Alimentação", "Take Away"),
    # Utilities ("galp energia" is shadowed by "galp" above)
    _m("edp", _FIXED, "Casa", "Electricidade"),
    _m("galp energia", _FIXED, "Casa", "Gás"),
    _m("vodafone", _FIXED, "Subscrições", "Telemóvel"),
    _m("nos", _FIXED, "Casa", "Internet"),
    _m("meo", _FIXED, "Casa", "Internet"),
    # Streaming & subscriptions
    _m("netflix", _FIXED, "Subscrições", "Outras Subscrições"),
    _m("spotify", _FIXED, "Subscrições", "Spotify"),
    _m("disney", _FIXED, "Subscrições", "Outras Subscrições"),
    _m("hbo", _FIXED, "Subscrições", "Outras Subscrições"),
    _m("amazon prime", _FIXED, "Subscrições", "Amazon"),
    _m("google one", _FIXED, "Subscrições", "Google One"),
    # Health & fitness
    _m("ginasio", _VARIABLE, "Desporto", "Ginásio"),
    _m("farmacia", _VARIABLE, "Saúde", "Medicamentos Adulto"),
    _m("yoga", _VARIABLE, "Desporto", "Yoga"),
    # Used sales
    _m("olx", _EXTRA, "Vendas Usados", "Olx"),
    _m("vinted", _EXTRA, "Vendas Usados", "Vinted"),
    # Pet
    _m("ração", _FIXED, "Axl", "Ração"),
    _m("veterinário", _VARIABLE, "Axl", "Veterinário"),
    # Banking
    _m("mbway", _VARIABLE, "Comissões", "MbWay"),
    # Parking & tolls
    _m("emel", _VARIABLE, "Transportes", "Estacionamento"),
    # Bakery & pastry
    _m("padaria", _VARIABLE, "Alimentação", "Padaria / Pastelaria"),
    _m("pastelaria", _VARIABLE, "Alimentação", "Padaria / Pastelaria"),
)


__all__ = ["MerchantRule", "MERCHANT_RULES"]
