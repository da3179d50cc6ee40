"""
Persistance locale du panier côté client (blob JSON: liste de lignes).
- Les échecs d'écriture sont journalisés puis ignorés: le panier reste correct en mémoire.
- Un fichier illisible ou corrompu donne un panier vide.
"""
from pathlib import Path
from typing import Any, Dict, List
import json
import logging

logger = logging.getLogger(__name__)

class FileCartStorage:
    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> List[Dict[str, Any]]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        except OSError:
            logger.exception("cart.storage.load failed path=%s", self.path)
            return []
        try:
            data = json.loads(raw)
        except ValueError:
            logger.error("cart.storage.load: JSON invalide, panier réinitialisé path=%s", self.path)
            return []
        return data if isinstance(data, list) else []

    def save(self, items: List[Dict[str, Any]]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp = self.path.with_suffix(self.path.suffix + ".tmp")
            tmp.write_text(json.dumps(items, ensure_ascii=False), encoding="utf-8")
            tmp.replace(self.path)
        except OSError:
            logger.exception("cart.storage.save failed path=%s", self.path)
