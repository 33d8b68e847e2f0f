import json
from pathlib import Path
from typing import Optional

import config
from enums.message_entity import MessageEntity

L10N_DIR = Path(__file__).resolve().parent.parent / "l10n"


class Localizator:

    @staticmethod
    def get_text(entity: MessageEntity, key: str, lang: Optional[str] = None) -> str:
        """
        Get localized text for given entity and key.

        Args:
            entity: Entity type (CUSTOMER, MANAGER, COMMON)
            key: Localization key
            lang: Optional language code (e.g., "en", "vi").
                  If None, uses config.APP_LANGUAGE (default).

        Returns:
            Localized text string

        Example:
            text = Localizator.get_text(MessageEntity.CUSTOMER, "checkout_success", lang="vi")
        """
        language = lang if lang is not None else config.APP_LANGUAGE
        localization_file = L10N_DIR / f"{language}.json"

        with open(localization_file, "r", encoding="UTF-8") as f:
            data = json.loads(f.read())
            if entity == MessageEntity.CUSTOMER:
                return data["customer"][key]
            elif entity == MessageEntity.MANAGER:
                return data["manager"][key]
            else:
                return data["common"][key]

    @staticmethod
    def get_status_text(status: str, lang: Optional[str] = None) -> str:
        """Display name of an order or payment status ("Pending" -> "Pending" / "Chờ xác nhận")."""
        return Localizator.get_text(MessageEntity.COMMON, f"status_{status.lower()}", lang=lang)
