"""
Codecs de rótulos de slots do galpão
- Linhas R1..R4 <-> letras A..D
- Grade determinística a partir da capacidade
"""
import math
import re
from typing import List, Optional

ROW_KEYS = ("R1", "R2", "R3", "R4")
COLUMN_LETTERS = ("A", "B", "C", "D")

_ROW_TO_LETTER = dict(zip(ROW_KEYS, COLUMN_LETTERS))
_LETTER_TO_ROW = dict(zip(COLUMN_LETTERS, ROW_KEYS))

# posições começam em 1: "A0" e "R10" não são slots
# "A1", "A-1", "a01"
_SHORT_RE = re.compile(r"^([A-D])-?0*([1-9]\d*)$")
# "R1-1", "R11" (linha R1, posição 1)
_ROW_FORM_RE = re.compile(r"^(R[1-4])-?0*([1-9]\d*)$")
# sufixo de ids compostos: "XYZ-C5"
_SUFFIX_RE = re.compile(r"([A-D])0*([1-9]\d*)$")


class LabelError(ValueError):
    """Chave de linha ou rótulo impossível de converter"""


def row_to_letter(row_key: str) -> str:
    """Converte chave de linha (R1..R4) para letra (A..D)."""
    key = str(row_key).strip().upper() if row_key is not None else ""
    if key not in _ROW_TO_LETTER:
        raise LabelError(f"Linha inválida: {row_key!r}")
    return _ROW_TO_LETTER[key]


def letter_to_row(letter: str) -> str:
    """Converte letra (A..D) para chave de linha (R1..R4)."""
    key = str(letter).strip().upper() if letter is not None else ""
    if key not in _LETTER_TO_ROW:
        raise LabelError(f"Letra inválida: {letter!r}")
    return _LETTER_TO_ROW[key]


def is_row_key(value) -> bool:
    return value is not None and str(value).strip().upper() in _ROW_TO_LETTER


def generate_grid(capacity: int) -> List[str]:
    """
    Gera os rótulos da grade linha a linha (A1, B1, C1, D1, A2, ...)
    truncando no rótulo de número `capacity`.
    """
    labels: List[str] = []
    if capacity < 1:
        return labels

    total_rows = math.ceil(capacity / len(COLUMN_LETTERS))
    for row in range(1, total_rows + 1):
        for letter in COLUMN_LETTERS:
            if len(labels) >= capacity:
                break
            labels.append(f"{letter}{row}")
    return labels


def parse_label(raw, row_context: Optional[str] = None) -> str:
    """
    Rótulo não numérico é usado como veio; rótulo só com dígitos
    recebe a letra da linha (R3 + "7" -> "C7").
    """
    text = "" if raw is None else str(raw).strip()
    if not text:
        raise LabelError("Rótulo vazio")
    if not text.isdigit():
        return text
    if row_context is None:
        raise LabelError(f"Rótulo numérico {text!r} sem linha")
    return f"{row_to_letter(row_context)}{text}"


def canonical_key(label) -> Optional[str]:
    """
    Forma curta <letra><número> de um rótulo, tolerando as codificações
    vistas no backend (A1, A-1, a01, R1-1, R11, XYZ-C5).
    Retorna None quando nenhuma se aplica.
    """
    if label is None:
        return None
    text = str(label).strip().upper()
    if not text:
        return None

    match = _SHORT_RE.match(text)
    if match:
        return f"{match.group(1)}{int(match.group(2))}"

    match = _ROW_FORM_RE.match(text)
    if match:
        return f"{row_to_letter(match.group(1))}{int(match.group(2))}"

    match = _SUFFIX_RE.search(text)
    if match:
        return f"{match.group(1)}{int(match.group(2))}"
    return None


def row_for_label(label) -> Optional[str]:
    """Chave de linha (R1..R4) de um rótulo, se houver forma curta"""
    key = canonical_key(label)
    return letter_to_row(key[0]) if key else None
