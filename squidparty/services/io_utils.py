"""
Utilitaires IO JSON (rapides) basés sur orjson.
- read_json(Path)  → Any | None (None si fichier manquant)
- write_json(Path, data) → écrit en binaire (création des dossiers si besoin)
- read_ndjson(Path) / append_ndjson(Path, entry) → journaux append-only (une entrée par ligne)

Attention:
- orjson renvoie/attend des bytes; on lit/écrit en mode binaire.
- write_json passe par un fichier temporaire puis `replace` (pas de snapshot tronqué).
"""
import orjson as json
from pathlib import Path
from typing import Any, Dict, Iterable, List


def read_json(path: Path) -> Any:
    """Lit un fichier JSON (ou None s'il n'existe pas)."""
    if not path.exists():
        return None
    with path.open("rb") as f:
        return json.loads(f.read())


def write_json(path: Path, data: Any) -> None:
    """Écrit un fichier JSON de manière sûre (dossier parent créé si absent)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    with tmp.open("wb") as f:
        f.write(json.dumps(data))
    tmp.replace(path)


def read_ndjson(path: Path) -> List[Dict[str, Any]]:
    """Lit un journal NDJSON; les lignes illisibles sont ignorées."""
    if not path.exists():
        return []
    entries: List[Dict[str, Any]] = []
    with path.open("rb") as fh:
        for line in fh:
            line = line.strip()
            if not line:
                continue
            try:
                entry = json.loads(line)
            except json.JSONDecodeError:
                continue
            if isinstance(entry, dict):
                entries.append(entry)
    return entries


def append_ndjson(path: Path, entry: Dict[str, Any]) -> None:
    """Ajoute une entrée en fin de journal."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("ab") as fh:
        fh.write(json.dumps(entry))
        fh.write(b"\n")


def write_ndjson(path: Path, entries: Iterable[Dict[str, Any]]) -> None:
    """Réécrit entièrement un journal (utilisé lors du bornage)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("wb") as fh:
        for entry in entries:
            fh.write(json.dumps(entry))
            fh.write(b"\n")
