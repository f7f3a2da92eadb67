"""
Core types for tokenization.
"""

type TokenId = int
type Piece = bytes
type PiecePair = tuple[Piece, Piece]
type MergeRanks = dict[PiecePair, int]
type Encoding = list[TokenId]
