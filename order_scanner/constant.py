"""Editable static sample catalog used when no catalog file is configured."""

from __future__ import annotations

CATEGORY_BADGES: dict[str, str] = {
    "Printing": "PR",
    "ID Creation": "ID",
    "Tela Purchase": "TP",
    "Lamination": "LM",
    "Document Binding": "DB",
    "Uniform": "UN",
}

PRODUCT_CATALOG: list[dict[str, object]] = [
    {
        "id": 7,
        "name": "A4 Bond Paper Print",
        "sku": "PRN-A4-001",
        "barcode": "8901234",
        "price": "25.00",
        "status": "active",
        "category_name": "Printing",
    },
    {
        "id": 8,
        "name": "Long Bond Paper Print",
        "sku": "PRN-LG-002",
        "barcode": "8901241",
        "price": "30.00",
        "status": "active",
        "category_name": "Printing",
    },
    {
        "id": 12,
        "name": "PVC ID Card",
        "sku": "IDC-PVC-001",
        "barcode": "4800016644290",
        "price": "120.00",
        "status": "active",
        "category_name": "ID Creation",
    },
    {
        "id": 15,
        "name": "ID Lace with Holder",
        "sku": "IDC-LAC-002",
        "barcode": "4800016644306",
        "price": "45.00",
        "status": "active",
        "category_name": "ID Creation",
    },
    {
        "id": 21,
        "name": "Tela Cotton (per yard)",
        "sku": "TEL-COT-001",
        "barcode": "4806502170013",
        "price": "180.00",
        "status": "active",
        "category_name": "Tela Purchase",
    },
    {
        "id": 30,
        "name": "Lamination A4",
        "sku": "LAM-A4-001",
        "barcode": "4806502170020",
        "price": "35.00",
        "status": "active",
        "category_name": "Lamination",
    },
    {
        "id": 31,
        "name": "Lamination ID Size",
        "sku": "LAM-ID-002",
        "barcode": "4806502170037",
        "price": "20.00",
        "status": "inactive",
        "category_name": "Lamination",
    },
    {
        "id": 40,
        "name": "Ring Binding (up to 100 pages)",
        "sku": "BND-RNG-001",
        "barcode": "4806502170044",
        "price": "60.00",
        "status": "active",
        "category_name": "Document Binding",
    },
    {
        "id": 52,
        "name": "School Uniform Patch",
        "sku": "UNI-PAT-001",
        "barcode": None,
        "price": "55.00",
        "status": "active",
        "category_name": "Uniform",
    },
]
