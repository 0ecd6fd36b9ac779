# Overview: Localized message catalogs and request language detection.

"""
Message lookup by dotted key (e.g. "sales.created").

translate() never raises: an unmapped key (or a key that resolves to a nested
group rather than a string) returns the key itself so callers always have a
displayable string.
"""

from __future__ import annotations

from flask import current_app, g, has_request_context, request


INDONESIAN = {
    "success": "Berhasil",
    "error": "Kesalahan",
    "notFound": "Tidak ditemukan",
    "serverError": "Terjadi kesalahan server",
    "badRequest": "Permintaan tidak valid",
    "routeNotFound": "Rute tidak ditemukan",
    "auth": {
        "required": "Token akses diperlukan",
        "invalid_credentials": "Token tidak valid atau kedaluwarsa",
    },
    "sales": {
        "created": "Penjualan berhasil dibuat",
        "notFound": "Penjualan tidak ditemukan",
        "missingRequiredFields": "Kolom wajib tidak boleh kosong: tenant_id, store_id, atau sale_items",
        "invalidSaleItems": "Setiap item penjualan harus memiliki product_id, qty, dan unit_price_cents",
        "fetchError": "Gagal mengambil data penjualan",
        "createError": "Gagal membuat penjualan",
        "listed": "Data penjualan berhasil diambil",
        "deleted": "Penjualan berhasil dihapus",
    },
    "products": {
        "notFound": "Produk tidak ditemukan",
        "created": "Produk berhasil dibuat",
        "updated": "Produk berhasil diperbarui",
        "deleted": "Produk berhasil dihapus",
    },
    "payments": {
        "notFound": "Pembayaran tidak ditemukan",
        "created": "Pembayaran berhasil dibuat",
        "statusUpdated": "Status pembayaran diperbarui",
    },
    "inventory": {
        "updated": "Stok berhasil diperbarui",
        "adjustmentCreated": "Penyesuaian stok berhasil dibuat",
        "product_created": "Produk berhasil dibuat",
        "products_listed": "Produk berhasil diambil",
        "product_info": "Informasi produk berhasil diambil",
        "product_updated": "Produk berhasil diperbarui",
        "product_deleted": "Produk berhasil dinonaktifkan",
        "product_not_found": "Produk tidak ditemukan",
        "sku_exists": "SKU sudah digunakan",
        "barcode_exists": "Barcode sudah digunakan",
        "stock_adjusted": "Stok berhasil disesuaikan",
        "negative_stock_error": "Stok tidak boleh negatif setelah penyesuaian",
        "low_stock_listed": "Produk dengan stok menipis berhasil diambil",
        "movements_listed": "Riwayat pergerakan stok berhasil diambil",
        "store_not_found": "Toko tidak ditemukan",
        "operation_error": "Operasi inventaris gagal",
    },
    "validation": {
        "required": "Kolom ini wajib diisi",
        "invalidFormat": "Format tidak valid",
        "mustBeNumber": "Harus berupa angka",
        "mustBePositive": "Harus berupa angka positif",
        "no_changes": "Tidak ada kolom yang diperbarui",
        "invalidJson": "Body JSON tidak valid",
    },
    "database": {
        "connectionError": "Gagal terhubung ke database",
        "queryError": "Gagal menjalankan query database",
    },
    "health": {
        "ok": "Sistem berfungsi dengan baik",
        "degraded": "Koneksi database gagal",
    },
}

ENGLISH = {
    "success": "Success",
    "error": "Error",
    "notFound": "Not found",
    "serverError": "Internal server error",
    "badRequest": "Bad request",
    "routeNotFound": "Route not found",
    "auth": {
        "required": "Access token required",
        "invalid_credentials": "Invalid or expired token",
    },
    "sales": {
        "created": "Sale created successfully",
        "notFound": "Sale not found",
        "missingRequiredFields": "Missing required fields: tenant_id, store_id, or sale_items",
        "invalidSaleItems": "Each sale item must have product_id, qty, and unit_price_cents",
        "fetchError": "Failed to fetch sales",
        "createError": "Failed to create sale",
        "listed": "Sales retrieved successfully",
        "deleted": "Sale deleted successfully",
    },
    "products": {
        "notFound": "Product not found",
        "created": "Product created successfully",
        "updated": "Product updated successfully",
        "deleted": "Product deleted successfully",
    },
    "payments": {
        "notFound": "Payment not found",
        "created": "Payment created successfully",
        "statusUpdated": "Payment status updated",
    },
    "inventory": {
        "updated": "Stock updated successfully",
        "adjustmentCreated": "Stock adjustment created successfully",
        "product_created": "Product created successfully",
        "products_listed": "Products retrieved successfully",
        "product_info": "Product information retrieved",
        "product_updated": "Product updated successfully",
        "product_deleted": "Product deactivated successfully",
        "product_not_found": "Product not found",
        "sku_exists": "SKU already exists",
        "barcode_exists": "Barcode already exists",
        "stock_adjusted": "Stock adjusted successfully",
        "negative_stock_error": "Stock cannot be negative after adjustment",
        "low_stock_listed": "Low stock products retrieved successfully",
        "movements_listed": "Inventory movements retrieved successfully",
        "store_not_found": "Store not found",
        "operation_error": "Inventory operation failed",
    },
    "validation": {
        "required": "This field is required",
        "invalidFormat": "Invalid format",
        "mustBeNumber": "Must be a number",
        "mustBePositive": "Must be a positive number",
        "no_changes": "No fields to update provided",
        "invalidJson": "Invalid JSON body",
    },
    "database": {
        "connectionError": "Failed to connect to database",
        "queryError": "Failed to execute database query",
    },
    "health": {
        "ok": "System is healthy",
        "degraded": "Database connection failed",
    },
}

DEFAULT_LANGUAGE = "id"

SUPPORTED_LANGUAGES = {
    "id": INDONESIAN,
    "indonesia": INDONESIAN,
    "id-ID": INDONESIAN,
    "en": ENGLISH,
    "en-US": ENGLISH,
    "en-GB": ENGLISH,
}


def get_messages(lang: str | None = None) -> dict:
    if lang and lang in SUPPORTED_LANGUAGES:
        return SUPPORTED_LANGUAGES[lang]
    if lang and lang.split("-", 1)[0] in SUPPORTED_LANGUAGES:
        return SUPPORTED_LANGUAGES[lang.split("-", 1)[0]]
    return SUPPORTED_LANGUAGES[DEFAULT_LANGUAGE]


def translate(key: str, lang: str | None = None) -> str:
    """Resolve a dotted message key; fall back to the key itself."""
    node = get_messages(lang)
    for part in key.split("."):
        if isinstance(node, dict) and part in node:
            node = node[part]
        else:
            return key
    if not isinstance(node, str):
        return key
    return node


def detect_language() -> str:
    """Pick the request language: ?lang=, then Accept-Language, then config default."""
    lang = request.args.get("lang")
    if not lang:
        header = request.headers.get("Accept-Language")
        if header:
            lang = header.split(",")[0].split(";")[0].strip()
    if not lang:
        lang = current_app.config.get("DEFAULT_LANGUAGE", DEFAULT_LANGUAGE)
    return lang


def t(key: str) -> str:
    """Translate using the current request's language."""
    lang = getattr(g, "language", None) if has_request_context() else None
    return translate(key, lang)
