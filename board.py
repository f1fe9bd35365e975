
class InputError(ValueError):
    pass


class Grid:
    def __init__(self, size):
        if isinstance(size, bool) or not isinstance(size, int) or size <= 0:
            raise InputError(f"board size must be a positive integer, got {size!r}")
        self.size = size
        self.visited = [[False] * size for _ in range(size)] # 访问标记

    def in_bounds(self, row, col):
        return 0 <= row < self.size and 0 <= col < self.size

    def _check(self, row, col):
        if not self.in_bounds(row, col):
            raise IndexError(f"cell ({row}, {col}) is outside a {self.size}x{self.size} board")

    def is_visited(self, row, col):
        self._check(row, col)
        return self.visited[row][col]

    def mark_visited(self, row, col, value=True):
        self._check(row, col)
        self.visited[row][col] = value

    def clear(self): # 清空棋盘
        for row in self.visited:
            for col in range(self.size):
                row[col] = False

    def visited_cells(self):
        return {
            (r, c)
            for r, row in enumerate(self.visited)
            for c, flag in enumerate(row)
            if flag
        }

    def __repr__(self):
        return f"Grid(size={self.size}, visited={len(self.visited_cells())})"
