from dataclasses import dataclass

@dataclass(slots=True)
class Board:
    columns: int
    score: int = 0
