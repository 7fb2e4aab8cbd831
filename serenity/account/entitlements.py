#!/usr/bin/env python3
"""
Premium entitlement
Stores the per-user premium flag that gates the counselor directory.
Payment verification happens elsewhere; this module only records its outcome.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from serenity.core.database import DatabaseManager, get_db_manager

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PaymentVerification:
    """Outcome reported by the payment provider"""
    user_id: str
    success: bool
    confirmation: Dict[str, Any] = field(default_factory=dict)


class EntitlementService:
    """Premium flag lookups and grants"""

    def __init__(self, db_manager: Optional[DatabaseManager] = None):
        self.db_manager = db_manager or get_db_manager()

    def is_premium_user(self, user_id: str) -> bool:
        with self.db_manager.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT is_premium FROM profiles WHERE user_id = ?", (user_id,))
            row = cursor.fetchone()
            return bool(row[0]) if row else False

    def grant_premium(self, user_id: str, confirmation: Optional[Dict[str, Any]] = None):
        with self.db_manager.get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("""
                INSERT INTO profiles (user_id, is_premium, premium_confirmation, updated_at)
                VALUES (?, TRUE, ?, CURRENT_TIMESTAMP)
                ON CONFLICT(user_id) DO UPDATE SET
                    is_premium = TRUE,
                    premium_confirmation = excluded.premium_confirmation,
                    updated_at = CURRENT_TIMESTAMP
            """, (user_id, json.dumps(confirmation) if confirmation else None))

        logger.info(f"Granted premium access to user {user_id}")

    def apply_verification(self, verification: PaymentVerification) -> bool:
        """Grant premium when the verification succeeded.

        Args:
            verification: provider result

        Returns:
            bool: True if the user is now premium
        """
        if not verification.success:
            logger.info(f"Payment not completed for user {verification.user_id}")
            return False

        self.grant_premium(verification.user_id, verification.confirmation)
        return True


_entitlement_service = None

def get_entitlement_service() -> EntitlementService:
    global _entitlement_service
    if _entitlement_service is None:
        _entitlement_service = EntitlementService()
    return _entitlement_service
