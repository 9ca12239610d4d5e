from datetime import datetime, timezone
from pathlib import Path
import re
import secrets


class KeyGenerator:
    @staticmethod
    def _safe_filename(filename: str) -> str:
        return re.sub(r"[^a-zA-Z0-9_.-]", "_", filename)

    @staticmethod
    def storage_name(original_filename: str, *, now: datetime | None = None) -> str:
        """``<epoch ms>_<16 hex><ext>``; the original name only contributes its extension."""
        moment = now or datetime.now(timezone.utc)
        ext = Path(KeyGenerator._safe_filename(original_filename)).suffix.lower() or ".bin"
        return f"{int(moment.timestamp() * 1000)}_{secrets.token_hex(8)}{ext}"

    @staticmethod
    def file_object_key(account_id: int, folder_id: int | None, storage_name: str) -> str:
        location = f"folder_{folder_id}" if folder_id is not None else "root"
        return f"accounts/{account_id}/files/{location}/{storage_name}"
