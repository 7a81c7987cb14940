from __future__ import annotations
import numpy as np
from typing import List, Dict, Optional

def matvec_rows_modp(rows: List[Dict[int,int]], z: np.ndarray, p: int) -> np.ndarray:
    """Compute (Rows @ z) mod p, where rows[i] is {col: coeff}."""
    m = len(rows)
    out = np.zeros(m, dtype=object)
    for i in range(m):
        acc = 0
        row = rows[i]
        for j, c in row.items():
            acc += c * z[j]
        out[i] = acc % p
    return out

def r1cs_residual_modp(
    A_rows: List[Dict[int,int]],
    B_rows: List[Dict[int,int]],
    C_rows: List[Dict[int,int]],
    z: np.ndarray,
    p: int,
) -> np.ndarray:
    """(A z) * (B z) - (C z) over F_p, one entry per constraint."""
    Az = matvec_rows_modp(A_rows, z, p)
    Bz = matvec_rows_modp(B_rows, z, p)
    Cz = matvec_rows_modp(C_rows, z, p)
    return (Az * Bz - Cz) % p

def first_nonzero(residual: np.ndarray) -> Optional[int]:
    if len(residual) == 0:
        return None
    nz = np.flatnonzero(residual != 0)
    return int(nz[0]) if nz.size else None
