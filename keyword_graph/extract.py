"""
Keyword extraction: per-document keyword text to a frequency table and a
symmetric co-occurrence table.

Counts live in a sparse document x keyword count matrix X. Keyword frequency
is the column sum and pair co-occurrence is the off-diagonal of X.T @ X: in a
document where a appears m times and b appears n times, the i<j pair loop
over its token list visits {a, b} exactly m * n times.
"""

import sys
from collections import Counter
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

import numpy as np
from scipy.sparse import coo_matrix, csr_matrix

# Tested in order; the first one present in the text wins.
DELIMITERS = (";", ",", "，", "、")

DEFAULT_FIELD = "Keywords"


@dataclass(frozen=True)
class Connection:
    keyword: str
    strength: int


@dataclass(frozen=True)
class KeywordStat:
    keyword: str
    count: int
    percentage: float
    connections: tuple[Connection, ...] = ()


@dataclass
class KeywordIndex:
    """Bidirectional map between keywords and matrix columns (first-seen order)."""
    kw_to_idx: dict[str, int] = field(default_factory=dict)
    idx_to_kw: list[str] = field(default_factory=list)

    def add(self, keyword: str) -> int:
        idx = self.kw_to_idx.get(keyword)
        if idx is None:
            idx = len(self.idx_to_kw)
            self.kw_to_idx[keyword] = idx
            self.idx_to_kw.append(keyword)
        return idx

    def __len__(self) -> int:
        return len(self.idx_to_kw)


# ---------------------------------------------------------------------------
# 1. Tokenize
# ---------------------------------------------------------------------------

def split_keywords(text: str | None) -> list[str]:
    """Split a keyword field on the first delimiter it contains.

    Tokens are stripped and empty ones dropped. Text with no delimiter is a
    single keyword. Repeated tokens are kept.
    """
    if not text:
        return []
    for sep in DELIMITERS:
        if sep in text:
            return [k.strip() for k in text.split(sep) if k.strip()]
    text = text.strip()
    return [text] if text else []


def read_keyword_field(document, field_name: str = DEFAULT_FIELD) -> str | None:
    """Return the raw keyword text of a record, or None when absent.

    Falsy values (None, "", 0, False) count as absent; other non-string
    values are converted with str().
    """
    if isinstance(document, Mapping):
        value = document.get(field_name)
    elif hasattr(document, field_name):
        value = getattr(document, field_name)
    else:
        raise TypeError(
            f"document must be a mapping or expose {field_name!r}, "
            f"got {type(document).__name__}"
        )
    if not value:
        return None
    if not isinstance(value, str):
        value = str(value)
    return value


# ---------------------------------------------------------------------------
# 2. Count matrix
# ---------------------------------------------------------------------------

def build_count_matrix(
    token_lists: list[list[str]],
) -> tuple[csr_matrix, KeywordIndex, dict[tuple[int, int], int]]:
    """Build the document x keyword count matrix.

    Also returns the first-seen rank of every co-occurring column pair, keyed
    by (lo, hi) with lo's keyword sorting before hi's. The rank reproduces the
    order in which pairs first appear across the corpus and is used to break
    strength ties deterministically.
    """
    index = KeywordIndex()
    pair_rank: dict[tuple[int, int], int] = {}
    rows, cols, data = [], [], []

    for doc_idx, tokens in enumerate(token_lists):
        if not tokens:
            continue
        columns = [index.add(t) for t in tokens]
        for col, count in Counter(columns).items():
            rows.append(doc_idx)
            cols.append(col)
            data.append(count)

        for i in range(len(tokens)):
            for j in range(i + 1, len(tokens)):
                a, b = columns[i], columns[j]
                if a == b:
                    continue
                key = (a, b) if tokens[i] < tokens[j] else (b, a)
                if key not in pair_rank:
                    pair_rank[key] = len(pair_rank)

    matrix = coo_matrix(
        (data, (rows, cols)), shape=(len(token_lists), len(index)), dtype=np.int64,
    ).tocsr()
    return matrix, index, pair_rank


def compute_cooccurrence(count_matrix: csr_matrix) -> csr_matrix:
    """Symmetric keyword x keyword co-occurrence strengths, zero diagonal."""
    cooc = (count_matrix.T @ count_matrix).tocsr()
    cooc.setdiag(0)
    cooc.eliminate_zeros()
    return cooc


# ---------------------------------------------------------------------------
# 3. Keyword table
# ---------------------------------------------------------------------------

def _connections_for(
    idx: int,
    cooc: csr_matrix,
    index: KeywordIndex,
    pair_rank: dict[tuple[int, int], int],
) -> tuple[Connection, ...]:
    row = cooc.getrow(idx)
    kw = index.idx_to_kw[idx]
    entries = []
    for other, strength in zip(row.indices.tolist(), row.data.tolist()):
        other_kw = index.idx_to_kw[other]
        key = (idx, other) if kw < other_kw else (other, idx)
        entries.append((pair_rank[key], other_kw, int(strength)))
    # Pair first-seen order, then strongest first (stable).
    entries.sort(key=lambda e: e[0])
    entries.sort(key=lambda e: e[2], reverse=True)
    return tuple(Connection(keyword=kw, strength=s) for _, kw, s in entries)


def as_records(documents) -> list:
    """Materialize a corpus, rejecting inputs that are not a sequence of records."""
    if documents is None or isinstance(documents, (str, bytes, Mapping)):
        raise TypeError(
            f"documents must be a sequence of records, got {type(documents).__name__}"
        )
    try:
        return list(documents)
    except TypeError:
        raise TypeError(
            f"documents must be a sequence of records, got {type(documents).__name__}"
        ) from None


def extract_keywords(
    documents: Iterable, field_name: str = DEFAULT_FIELD, verbose: bool = True,
) -> list[KeywordStat]:
    """Build the frequency-sorted keyword table of a corpus.

    Documents with an empty or missing keyword field are skipped but still
    count toward the percentage denominator.
    """
    documents = as_records(documents)
    token_lists = [split_keywords(read_keyword_field(d, field_name)) for d in documents]
    if not documents:
        return []

    count_matrix, index, pair_rank = build_count_matrix(token_lists)
    if len(index) == 0:
        return []
    freq = np.asarray(count_matrix.sum(axis=0)).flatten()
    cooc = compute_cooccurrence(count_matrix)

    n_docs = len(documents)
    # Python's sort is stable, so ties keep first-seen column order.
    order = sorted(range(len(index)), key=lambda i: int(freq[i]), reverse=True)
    stats = [
        KeywordStat(
            keyword=index.idx_to_kw[i],
            count=int(freq[i]),
            percentage=100.0 * int(freq[i]) / n_docs,
            connections=_connections_for(i, cooc, index, pair_rank),
        )
        for i in order
    ]

    if verbose:
        print(
            f"Extracted {len(stats)} keywords from {n_docs} documents "
            f"({cooc.nnz // 2:,} co-occurring pairs)",
            file=sys.stderr,
        )
    return stats


def pair_strength(stats: list[KeywordStat], a: str, b: str) -> int:
    """Co-occurrence strength of a keyword pair, 0 when they never co-occur."""
    for stat in stats:
        if stat.keyword == a:
            for conn in stat.connections:
                if conn.keyword == b:
                    return conn.strength
            return 0
    return 0
