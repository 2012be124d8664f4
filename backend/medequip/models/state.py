from __future__ import annotations

from ..extensions import db
from medequip.time_utils import to_utc_z


class StateBlob(db.Model):
    """
    One named JSON blob of dashboard state.

    Each collection (departments, equipment, equipment_usage, ...) lives in
    its own row, keyed by the collection name. Rows are written independently;
    there is no transaction spanning several keys.
    """
    __tablename__ = "state_blobs"

    key = db.Column(db.String(64), primary_key=True)
    value_json = db.Column(db.Text, nullable=False)

    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self):
        return {
            "key": self.key,
            "size": len(self.value_json or ""),
            "updated_at": to_utc_z(self.updated_at),
        }
