"""決定的バケッティング（FNV-1a 64bit）

同じ subject / salt の組み合わせは、どの言語の SDK でも同じ値になる必要がある。
"""

from __future__ import annotations

# FNV-1a 64bit 定数
# https://www.ietf.org/archive/id/draft-eastlake-fnv-21.html#section-6.1.2
FNV_PRIME_64 = 0x100000001B3
FNV_OFFSET_64 = 0xCBF29CE484222325

_MASK_64 = 0xFFFFFFFFFFFFFFFF


def fnv1a64(data: bytes) -> int:
    """バイト列の FNV-1a 64bit ハッシュを返す。"""
    h = FNV_OFFSET_64
    for b in data:
        h ^= b
        h = (h * FNV_PRIME_64) & _MASK_64
    return h


def normalized_hash(key: str, salt: str) -> float:
    """key + salt を [0, 1) の値に写像する。

    ハッシュ値を 100 で割った余りを 100 で割るため、結果は 0.01 刻みになる。

    Args:
        key: バケッティング対象（通常はユーザー ID）
        salt: ロールアウトやバリアントごとに混ぜる文字列

    Returns:
        0.0 以上 1.0 未満の値
    """
    return (fnv1a64((key + salt).encode("utf-8")) % 100) / 100.0
