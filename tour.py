import logging
import random

from board import Grid, InputError

logger = logging.getLogger(__name__)

KNIGHT_MOVES = (
    (-1, 2), (1, 2), (-2, 1), (2, 1),
    (-1, -2), (1, -2), (-2, -1), (2, -1)
) # 八种跳法，枚举顺序固定，决定同分时的先后


class SearchAborted(RuntimeError):
    def __init__(self, steps):
        super().__init__(f"search aborted after {steps} steps")
        self.steps = steps


def is_knight_move(a, b):
    dr, dc = abs(a[0] - b[0]), abs(a[1] - b[1])
    return {dr, dc} == {1, 2}


def is_valid_tour(path, size, complete=True): # complete=False 时只要求是某条巡游的前缀
    if not isinstance(path, (list, tuple)):
        return False
    cells = []
    for cell in path:
        if not isinstance(cell, (list, tuple)) or len(cell) != 2:
            return False
        if not all(isinstance(v, int) and not isinstance(v, bool) for v in cell):
            return False
        if not (0 <= cell[0] < size and 0 <= cell[1] < size):
            return False
        cells.append(tuple(cell))
    if complete and len(cells) != size * size:
        return False
    if len(set(cells)) != len(cells):
        return False
    return all(is_knight_move(a, b) for a, b in zip(cells, cells[1:]))


def random_start(size, rng=None): # 随机起点
    if isinstance(size, bool) or not isinstance(size, int) or size <= 0:
        raise InputError(f"board size must be a positive integer, got {size!r}")
    rng = rng or random
    return rng.randrange(size), rng.randrange(size)


class TourSolver:
    def __init__(self, grid, max_steps=None):
        self.grid = grid
        self.path = [] # 已走格子栈
        self.target = grid.size * grid.size
        self.max_steps = max_steps
        self.steps = 0 # 搜索步数

    def go_ahead(self, row, col):
        self.grid.mark_visited(row, col, True)
        self.path.append((row, col))

    def go_back(self):
        row, col = self.path.pop()
        self.grid.mark_visited(row, col, False)

    def reset(self):
        self.grid.clear()
        self.path.clear()

    def possible_moves(self, row, col):
        moves = []
        for dr, dc in KNIGHT_MOVES:
            r, c = row + dr, col + dc
            if self.grid.in_bounds(r, c) and not self.grid.is_visited(r, c):
                moves.append((r, c))
        return moves

    def ordered_moves(self, row, col): # Warnsdorff贪心策略，优先选择后续可走路线最少的格子
        moves = self.possible_moves(row, col)
        return sorted(moves, key=lambda move: len(self.possible_moves(*move))) # sorted 是稳定排序

    def solve(self, start_row=0, start_col=0): # 成功时 path 为完整路径；失败时棋盘和路径全部清空
        for value in (start_row, start_col):
            if isinstance(value, bool) or not isinstance(value, int):
                raise InputError(f"start coordinates must be integers, got ({start_row!r}, {start_col!r})")
        if not self.grid.in_bounds(start_row, start_col):
            raise InputError(
                f"start ({start_row}, {start_col}) is outside a {self.grid.size}x{self.grid.size} board"
            )

        self.reset()
        self.steps = 0
        logger.debug("solving %dx%d from (%d, %d)", self.grid.size, self.grid.size, start_row, start_col)
        try:
            found = self._search(start_row, start_col)
        except SearchAborted:
            logger.info("gave up on %dx%d from (%d, %d) after %d steps",
                        self.grid.size, self.grid.size, start_row, start_col, self.steps)
            self.reset()
            raise
        logger.debug("%s after %d steps", "tour found" if found else "no tour", self.steps)
        return found

    def _search(self, row, col): # 显式栈 DFS，每帧保存该格剩余的候选走法
        self.go_ahead(row, col)
        if len(self.path) == self.target:
            return True

        frames = [iter(self.ordered_moves(row, col))]
        while frames:
            move = next(frames[-1], None)
            if move is None: # 候选走法用尽，回退
                frames.pop()
                self.go_back()
                continue

            self._count_step()
            self.go_ahead(*move)
            if len(self.path) == self.target:
                return True
            frames.append(iter(self.ordered_moves(*move)))

        return False

    def _count_step(self):
        self.steps += 1
        if self.max_steps is not None and self.steps > self.max_steps:
            raise SearchAborted(self.max_steps)


def find_tour(size, start_row=0, start_col=0, max_steps=None): # 一次性求解，返回路径或 None
    solver = TourSolver(Grid(size), max_steps=max_steps)
    if solver.solve(start_row, start_col):
        return list(solver.path)
    return None
