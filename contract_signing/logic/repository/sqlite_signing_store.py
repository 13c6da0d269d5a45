"""
===============================================================================
SqliteSigningStore – SQLite-backed signing persistence
-------------------------------------------------------------------------------
Tables:
    documents         original + current PDF bytes, revision counter
    signature_fields  field geometry plus write-once committed columns
    artworks          PNG blobs keyed by "sha256:<hex>"

Writes run in explicit ``BEGIN IMMEDIATE`` transactions so a read of the
current bytes and the write of the new bytes cannot interleave with another
writer of the same database.
===============================================================================
"""
from __future__ import annotations
import logging
import sqlite3
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, List, Optional, Sequence

from core.helpers.date_time_helper import parse_iso, to_iso, utc_now_iso
from ...exceptions.errors import (
    ArtworkDecodeError, FieldAlreadySignedError, InvalidFieldReferenceError, StaleDocumentError,
    UnauthorizedFieldError,
)
from ...models.artwork import RasterArtwork
from ...models.signature_enums import CaptureMode
from ...models.signature_field import CommittedMark, SignatureField
from ...models.submission import Submission

logger = logging.getLogger(__name__)


def _ensure_schema(conn: sqlite3.Connection) -> None:
    conn.executescript(
        """
        CREATE TABLE IF NOT EXISTS documents (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            title TEXT NOT NULL,
            original_pdf BLOB NOT NULL,
            current_pdf BLOB NOT NULL,
            revision INTEGER NOT NULL DEFAULT 0,
            created_at TEXT,
            updated_at TEXT,
            executed_at TEXT
        );
        CREATE TABLE IF NOT EXISTS signature_fields (
            id TEXT PRIMARY KEY,
            document_id INTEGER NOT NULL,
            sort_order INTEGER NOT NULL,
            page_number INTEGER NOT NULL,
            x_percent REAL NOT NULL,
            y_percent REAL NOT NULL,
            width_percent REAL NOT NULL,
            height_percent REAL NOT NULL,
            field_type TEXT NOT NULL,
            assigned_party TEXT NOT NULL,
            label TEXT,
            signed_by_name TEXT,
            signed_at TEXT,
            artwork_ref TEXT,
            value TEXT,
            FOREIGN KEY (document_id) REFERENCES documents(id) ON DELETE CASCADE
        );
        CREATE TABLE IF NOT EXISTS artworks (
            ref TEXT PRIMARY KEY,
            png BLOB NOT NULL,
            width INTEGER NOT NULL,
            height INTEGER NOT NULL,
            text TEXT
        );
        """
    )


def _row_to_field(r: sqlite3.Row) -> SignatureField:
    mark = None
    if r["signed_at"]:
        mark = CommittedMark(
            signed_by_name=r["signed_by_name"] or "",
            signed_at=parse_iso(r["signed_at"]),
            artwork_ref=r["artwork_ref"],
            value=r["value"],
        )
    return SignatureField(
        id=r["id"],
        page_number=int(r["page_number"]),
        x_percent=float(r["x_percent"]),
        y_percent=float(r["y_percent"]),
        width_percent=float(r["width_percent"]),
        height_percent=float(r["height_percent"]),
        field_type=r["field_type"],
        assigned_party=r["assigned_party"],
        label=r["label"],
        committed_mark=mark,
    )


@dataclass
class _SqliteTransaction:
    conn: sqlite3.Connection
    document_id: int
    revision: int
    current_bytes: bytes = field(repr=False)
    fields: List[SignatureField]
    recorded: bool = False

    def record(self, submission: Submission) -> None:
        by_id = {f.id: f for f in self.fields}
        for rec in submission.records:
            existing = by_id.get(rec.field_id)
            if existing is None:
                raise InvalidFieldReferenceError(
                    f"Field '{rec.field_id}' does not belong to document {self.document_id}."
                )
            if existing.assigned_party != submission.party:
                raise UnauthorizedFieldError(rec.field_id, existing.assigned_party.value,
                                             submission.party.value)
            self.conn.execute(
                "INSERT OR IGNORE INTO artworks (ref, png, width, height, text) VALUES (?, ?, ?, ?, ?)",
                (rec.artwork_ref, rec.artwork_png, *_png_size(rec.artwork_png), rec.value),
            )
            cur = self.conn.execute(
                """
                UPDATE signature_fields
                   SET signed_by_name = ?, signed_at = ?, artwork_ref = ?, value = ?
                 WHERE id = ? AND document_id = ? AND signed_at IS NULL
                """,
                (rec.signed_by_name, to_iso(rec.signed_at), rec.artwork_ref, rec.value,
                 rec.field_id, self.document_id),
            )
            if cur.rowcount != 1:
                raise FieldAlreadySignedError(rec.field_id)

        now = utc_now_iso()
        cur = self.conn.execute(
            "UPDATE documents SET current_pdf = ?, revision = revision + 1, updated_at = ? "
            "WHERE id = ? AND revision = ?",
            (submission.document_bytes, now, self.document_id, self.revision),
        )
        if cur.rowcount != 1:
            raise StaleDocumentError(
                f"Document {self.document_id} changed while signing; reload it and sign again."
            )
        unsigned = self.conn.execute(
            "SELECT COUNT(*) FROM signature_fields WHERE document_id = ? AND signed_at IS NULL",
            (self.document_id,),
        ).fetchone()[0]
        if unsigned == 0:
            self.conn.execute("UPDATE documents SET executed_at = ? WHERE id = ?", (now, self.document_id))
        self.revision += 1
        self.current_bytes = submission.document_bytes
        self.recorded = True


def _png_size(png: bytes) -> tuple:
    # width/height live at fixed offsets of the IHDR chunk
    if png[:8] == b"\x89PNG\r\n\x1a\n" and len(png) >= 24:
        return int.from_bytes(png[16:20], "big"), int.from_bytes(png[20:24], "big")
    raise ArtworkDecodeError("Artwork blobs must be PNG.")


class SqliteSigningStore:
    """
    SQLite implementation of :class:`SigningStore`.

    One shared connection in autocommit mode; every write opens its own
    ``BEGIN IMMEDIATE`` transaction. Use ``":memory:"`` for tests.
    """

    def __init__(self, db_path: Path | str) -> None:
        self._db_path = Path(db_path)
        self._lock = threading.RLock()
        self._conn: Optional[sqlite3.Connection] = None
        with self._lock:
            _ensure_schema(self.conn)

    @property
    def conn(self) -> sqlite3.Connection:
        """Return a shared sqlite3.Connection; create it on first use."""
        if self._conn is None:
            if str(self._db_path) != ":memory:":
                self._db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(str(self._db_path), check_same_thread=False,
                                         isolation_level=None)
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA foreign_keys = ON")
        return self._conn

    def close(self) -> None:
        """Close the current connection if present and clear the handle."""
        with self._lock:
            if self._conn is not None:
                try:
                    self._conn.close()
                finally:
                    self._conn = None

    @contextmanager
    def _write(self) -> Iterator[sqlite3.Connection]:
        with self._lock:
            conn = self.conn
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except BaseException:
                conn.execute("ROLLBACK")
                raise
            conn.execute("COMMIT")

    # --------------- WRITE --------------- #
    def add_document(self, title: str, pdf_bytes: bytes) -> int:
        now = utc_now_iso()
        with self._write() as conn:
            cur = conn.execute(
                "INSERT INTO documents (title, original_pdf, current_pdf, revision, created_at, updated_at) "
                "VALUES (?, ?, ?, 0, ?, ?)",
                (title, pdf_bytes, pdf_bytes, now, now),
            )
            return int(cur.lastrowid)

    def add_fields(self, document_id: int, fields: Sequence[SignatureField]) -> None:
        with self._write() as conn:
            self._require_document(conn, document_id)
            start = conn.execute(
                "SELECT COALESCE(MAX(sort_order), -1) + 1 FROM signature_fields WHERE document_id = ?",
                (document_id,),
            ).fetchone()[0]
            for i, f in enumerate(fields):
                try:
                    conn.execute(
                        """
                        INSERT INTO signature_fields
                            (id, document_id, sort_order, page_number, x_percent, y_percent,
                             width_percent, height_percent, field_type, assigned_party, label)
                        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                        """,
                        (f.id, document_id, start + i, f.page_number, f.x_percent, f.y_percent,
                         f.width_percent, f.height_percent, f.field_type.value,
                         f.assigned_party.value, f.label),
                    )
                except sqlite3.IntegrityError as exc:
                    raise InvalidFieldReferenceError(f"Field id '{f.id}' already exists.") from exc

    @contextmanager
    def transaction(self, document_id: int,
                    expected_revision: Optional[int] = None) -> Iterator[_SqliteTransaction]:
        with self._write() as conn:
            row = self._require_document(conn, document_id)
            revision = int(row["revision"])
            if expected_revision is not None and expected_revision != revision:
                raise StaleDocumentError(
                    f"Document {document_id} is at revision {revision}, expected {expected_revision}; "
                    "reload it and sign again."
                )
            tx = _SqliteTransaction(
                conn=conn,
                document_id=document_id,
                revision=revision,
                current_bytes=bytes(row["current_pdf"]),
                fields=self._fields(conn, document_id),
            )
            yield tx
            if tx.recorded:
                logger.info("Document %s now at revision %d", document_id, tx.revision)

    # --------------- READ --------------- #
    def list_fields(self, document_id: int) -> List[SignatureField]:
        with self._lock:
            self._require_document(self.conn, document_id)
            return self._fields(self.conn, document_id)

    def current_bytes(self, document_id: int) -> bytes:
        with self._lock:
            return bytes(self._require_document(self.conn, document_id)["current_pdf"])

    def original_bytes(self, document_id: int) -> bytes:
        with self._lock:
            return bytes(self._require_document(self.conn, document_id)["original_pdf"])

    def revision(self, document_id: int) -> int:
        with self._lock:
            return int(self._require_document(self.conn, document_id)["revision"])

    def load_artwork(self, ref: str) -> Optional[RasterArtwork]:
        with self._lock:
            r = self.conn.execute("SELECT * FROM artworks WHERE ref = ?", (ref,)).fetchone()
        if r is None:
            return None
        return RasterArtwork(width=int(r["width"]), height=int(r["height"]), png_bytes=bytes(r["png"]),
                             text=r["text"], mode=CaptureMode.UPLOAD)

    def is_fully_executed(self, document_id: int) -> bool:
        with self._lock:
            self._require_document(self.conn, document_id)
            r = self.conn.execute(
                "SELECT COUNT(*) AS total, SUM(signed_at IS NULL) AS open "
                "FROM signature_fields WHERE document_id = ?",
                (document_id,),
            ).fetchone()
        return int(r["total"]) > 0 and not int(r["open"] or 0)

    # --------------- helpers --------------- #
    @staticmethod
    def _require_document(conn: sqlite3.Connection, document_id: int) -> sqlite3.Row:
        row = conn.execute("SELECT * FROM documents WHERE id = ?", (document_id,)).fetchone()
        if row is None:
            raise InvalidFieldReferenceError(f"Unknown document id {document_id}.")
        return row

    @staticmethod
    def _fields(conn: sqlite3.Connection, document_id: int) -> List[SignatureField]:
        rows = conn.execute(
            "SELECT * FROM signature_fields WHERE document_id = ? ORDER BY sort_order",
            (document_id,),
        ).fetchall()
        return [_row_to_field(r) for r in rows]
