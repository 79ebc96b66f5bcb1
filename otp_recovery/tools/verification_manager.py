"""Maintenance commands for pending verification records"""
from datetime import datetime, timezone
from typing import Any, Dict

from otp_recovery.api.dependencies import build_verification_store
from otp_recovery.core.database import SessionLocal
from otp_recovery.schemas.verification import VerificationType
from otp_recovery.services.verification_store import VerificationStore


class VerificationManager:
    """Operator view over the configured verification store"""

    def __init__(self, store: VerificationStore):
        self.store = store

    def get_stats(self, target: str) -> Dict[str, Any]:
        return {
            "target": target,
            "pending": {
                kind.value: self.store.count(kind, target)
                for kind in VerificationType
            },
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    def purge_expired(self) -> Dict[str, int]:
        return {"deleted_count": self.store.purge_expired()}

    def revoke(self, target: str) -> Dict[str, int]:
        deleted = sum(self.store.revoke(kind, target)
                      for kind in VerificationType)
        return {"deleted_count": deleted}


USAGE = """usage:
  python -m otp_recovery.tools.verification_manager stats TARGET
  python -m otp_recovery.tools.verification_manager purge-expired
  python -m otp_recovery.tools.verification_manager revoke TARGET"""


def main(argv, store: VerificationStore = None) -> int:
    if not argv:
        print(USAGE)
        return 1

    command, args = argv[0], argv[1:]
    if command in ("stats", "revoke") and len(args) != 1:
        print(USAGE)
        return 1

    db = None
    if store is None:
        db = SessionLocal()
        store = build_verification_store(db)
    manager = VerificationManager(store)

    try:
        if command == "stats":
            stats = manager.get_stats(args[0])
            print(f"Pending verifications for {stats['target']}:")
            for kind, count in stats["pending"].items():
                print(f"  {kind}: {count}")
        elif command == "purge-expired":
            result = manager.purge_expired()
            print(f"Purged {result['deleted_count']} expired verification(s)")
        elif command == "revoke":
            result = manager.revoke(args[0])
            print(f"Revoked {result['deleted_count']} verification(s)")
        else:
            print(f"Unknown command: {command}")
            return 1
    finally:
        if db is not None:
            db.close()
    return 0


if __name__ == "__main__":
    import sys

    sys.exit(main(sys.argv[1:]))
