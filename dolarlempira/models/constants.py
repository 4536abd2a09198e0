"""Static constants shared across modules."""

BASE_CURRENCY = "USD"
LOCAL_CURRENCY = "HNL"
LOCAL_SYMBOL = "L"

# USD amounts shown in the quick conversion table
TABLE_AMOUNTS = (1, 5, 10, 20, 50, 100, 200, 500, 1000, 5000)

DEFAULT_USD_AMOUNT = 100

# Upstream payload field names (BCH indicator API)
FIELD_VALUE = "Valor"
FIELD_DATE = "Fecha"
