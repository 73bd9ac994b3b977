"""
file_parser.py
==============

Turn an uploaded **CSV / Excel** file into a ``pandas.DataFrame``.

* file type from MIME type and extension
* CSV encoding guessed with **chardet**, then a fallback list is tried in turn
* BOM / non-breaking spaces stripped from the header row
* every value read as **string** (``dtype=str``, ``keep_default_na=False``)
* empty or unsupported files raise ``ValueError``

Accepts a FastAPI ``UploadFile``, a ``Path`` / ``str`` or raw ``bytes`` so
the API and pytest can both call it directly.
"""

from __future__ import annotations

import io
import mimetypes
import unicodedata
from pathlib import Path
from typing import Final, Iterable

import chardet
import pandas as pd
from fastapi import UploadFile


ENCODINGS: Final[list[str]] = [
    "utf-8",
    "utf-8-sig",
    "utf-16",
    "utf-16-le",
    "utf-16-be",
    "cp1251",
    "iso8859-1",
]

# Synonymous headers from spreadsheet exports, folded to the canonical
# English labels the movement importer looks up.
HEADER_ALIASES: Final[dict[str, str]] = {
    # --- date ------------------------------------------------------------
    "дата": "date",
    "day": "date",
    # --- district / store ------------------------------------------------
    "район": "district",
    "districtid": "district",
    "district_id": "district",
    "магазин": "store",
    "точка": "store",
    "storeid": "store",
    "store_id": "store",
    # --- product ---------------------------------------------------------
    "товар": "product",
    "продукт": "product",
    "productid": "product",
    "product_id": "product",
    "sku": "product",
    # --- operation / payment --------------------------------------------
    "операция": "operation",
    "тип операции": "operation",
    "operationtype": "operation",
    "operation_type": "operation",
    "type": "operation",
    "оплата": "payment",
    "способ оплаты": "payment",
    "paymenttype": "payment",
    "payment_type": "payment",
    # --- quantities ------------------------------------------------------
    "количество": "quantity",
    "кол-во": "quantity",
    "qty": "quantity",
    "цена": "unit price",
    "цена за шт": "unit price",
    "unitprice": "unit price",
    "unit_price": "unit price",
    "price": "unit price",
    "комментарий": "comment",
    "note": "comment",
}


# --------------------------------------------------------------------------- #
# public API                                                                  #
# --------------------------------------------------------------------------- #
def read_dataframe(file: UploadFile | str | Path | bytes | bytearray, filename: str = "") -> pd.DataFrame:
    """
    Parameters
    ----------
    file :
        * **FastAPI UploadFile** – a real upload
        * **str / Path** – a file on disk (tests, local runs)
        * **bytes / bytearray** – content already in memory
    filename :
        Name used for type detection when *file* is raw bytes.

    Returns
    -------
    pandas.DataFrame
        First row as header, every cell as ``str``.

    Raises
    ------
    ValueError
        - empty file
        - unsupported file type
        - no encoding could decode the CSV
    """
    raw, detected_name = _get_raw_and_name(file)
    filename = detected_name or filename

    if not raw:
        raise ValueError("File is empty")

    mime, _ = mimetypes.guess_type(filename)
    lower_name = filename.lower()

    # ----------------------------- Excel ----------------------------------
    if lower_name.endswith((".xlsx", ".xls")):
        df = pd.read_excel(io.BytesIO(raw), dtype=str, keep_default_na=False)

    # ----------------------------- CSV ------------------------------------
    elif mime in ("text/csv", None) or lower_name.endswith(".csv"):
        df = _read_csv(raw)

    else:
        raise ValueError("Unsupported file type (only .csv/.xlsx/.xls accepted)")

    # ---------------------- column normalisation --------------------------
    # NFKC folds full-width glyphs; BOM and NBSP sneak into cell A1 of
    # spreadsheet exports.
    df.columns = (
        df.columns.astype(str)
        .map(lambda s: unicodedata.normalize("NFKC", s))
        .str.replace("\ufeff", "", regex=False)      # BOM
        .str.replace("\u00a0", " ", regex=False)     # NBSP
        .str.strip()
    )

    # ---------------------- header alias folding --------------------------
    df.rename(
        columns={c: HEADER_ALIASES[c.lower()] for c in df.columns if c.lower() in HEADER_ALIASES},
        inplace=True,
    )

    if df.empty:
        raise ValueError("File has no data rows")

    return df


__all__ = ["read_dataframe", "HEADER_ALIASES"]


# --------------------------------------------------------------------------- #
# helpers (private)                                                           #
# --------------------------------------------------------------------------- #
def _read_csv(raw: bytes) -> pd.DataFrame:
    # Many NUL bytes in the first KB usually means UTF-16
    might_be_utf16 = b"\x00" in raw[:1024]
    enc_guess: str = (chardet.detect(raw[:4096]).get("encoding") or "").lower()

    enc_try_order = (
        ["utf-16", "utf-16-le", "utf-16-be"] if might_be_utf16 else []
    ) + ([enc_guess] if enc_guess else []) + ENCODINGS

    for enc in _unique(enc_try_order):
        try:
            # csv.Sniffer does not cope with UTF-16, force comma there
            sep_param = None if enc.startswith("utf-8") or enc == "cp1251" else ","
            df = pd.read_csv(
                io.BytesIO(raw),
                encoding=enc,
                dtype=str,
                keep_default_na=False,
                sep=sep_param,
                engine="python",
            )
        except (UnicodeDecodeError, UnicodeError):
            continue

        # Sniffer missed the delimiter: try the usual alternatives
        if df.shape[1] == 1:
            for sep in (",", ";", "\t", "|"):
                try:
                    alt = pd.read_csv(
                        io.BytesIO(raw),
                        encoding=enc,
                        dtype=str,
                        keep_default_na=False,
                        sep=sep,
                    )
                except (UnicodeDecodeError, pd.errors.ParserError):
                    continue
                if alt.shape[1] > 1:
                    df = alt
                    break
        return df

    raise ValueError("Cannot decode CSV – unknown encoding")


def _get_raw_and_name(
    file: UploadFile | str | Path | bytes | bytearray,
) -> tuple[bytes, str]:
    """
    Convert the accepted inputs into raw bytes + filename.

    * FastAPI / Starlette ``UploadFile`` (objects with ``.file`` & ``.filename``)
    * ``str`` / ``pathlib.Path`` pointing to a file on disk
    * ``bytes`` / ``bytearray`` already in memory
    """
    if isinstance(file, (bytes, bytearray)):
        return bytes(file), ""

    if isinstance(file, (str, Path)):
        p = Path(file)
        return p.read_bytes(), p.name

    if isinstance(file, UploadFile) or (hasattr(file, "file") and hasattr(file, "filename")):
        return file.file.read(), file.filename or ""

    raise TypeError(
        "file must be UploadFile | str | Path | bytes | bytearray; "
        f"got {type(file)}"
    )


def _unique(seq: Iterable[str]) -> list[str]:
    """Drop duplicates, keep order."""
    seen: set[str] = set()
    out: list[str] = []
    for item in seq:
        if item not in seen:
            seen.add(item)
            out.append(item)
    return out
