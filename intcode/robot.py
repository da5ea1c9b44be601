"""Hull painting robot: a camera/paint/turn client driven by an IntCode brain."""

from __future__ import annotations

import logging
from typing import Dict, Optional, Sequence, Set, Tuple

from .controller import MachineController
from .machine import IOMode, Machine, MachineConfig

LOGGER = logging.getLogger("intcode.robot")

BLACK = 0
WHITE = 1

TURN_LEFT = 0
TURN_RIGHT = 1

# Headings clockwise from up; y grows downwards.
_HEADINGS: Tuple[Tuple[int, int], ...] = ((0, -1), (1, 0), (0, 1), (-1, 0))

Panel = Tuple[int, int]


class HullPaintingRobot:
    """Paint hull panels under control of *program*.

    The brain receives the colour of the panel under the robot and answers
    with two outputs: the colour to paint and the turn to make
    (``0`` left, ``1`` right). After turning the robot moves one panel
    forward and reports the colour it now stands on.
    """

    def __init__(
        self,
        program: Sequence[int],
        start_color: int = BLACK,
        *,
        config: Optional[MachineConfig] = None,
    ) -> None:
        if start_color not in (BLACK, WHITE):
            raise ValueError(f"start colour must be 0 or 1, got {start_color}")
        cfg = (config or MachineConfig()).replace(io_mode=IOMode.CHANNEL, halt_on_output=False)
        self.machine = Machine(program, cfg, name="robot-brain")
        self.start_color = start_color
        self.position: Panel = (0, 0)
        self.heading = 0
        self.panels: Dict[Panel, int] = {}
        self.painted: Set[Panel] = set()
        if start_color != BLACK:
            self.panels[self.position] = start_color

    def color_at(self, panel: Panel) -> int:
        return self.panels.get(panel, BLACK)

    def paint(self, color: int) -> None:
        if color not in (BLACK, WHITE):
            raise ValueError(f"invalid paint colour {color} at {self.position}")
        LOGGER.debug("robot paints %s colour %d", self.position, color)
        self.panels[self.position] = color
        self.painted.add(self.position)

    def turn_and_move(self, turn: int) -> int:
        """Turn, advance one panel and return the colour seen there."""
        if turn == TURN_RIGHT:
            self.heading = (self.heading + 1) % 4
        elif turn == TURN_LEFT:
            self.heading = (self.heading - 1) % 4
        else:
            raise ValueError(f"invalid turn {turn} at {self.position}")
        dx, dy = _HEADINGS[self.heading]
        self.position = (self.position[0] + dx, self.position[1] + dy)
        return self.color_at(self.position)

    def run(self) -> Dict[Panel, int]:
        """Run the brain to completion and return the painted panel map."""
        controller = MachineController(
            self.machine,
            [self.paint, self.turn_and_move],
            initial_input=self.color_at(self.position),
        )
        controller.run()
        LOGGER.info("robot painted %d panels", self.painted_count)
        return dict(self.panels)

    @property
    def painted_count(self) -> int:
        return len(self.painted)

    def render(self, *, white: str = "#", black: str = " ") -> str:
        """Render the hull as text, one row per line, cropped to white panels."""
        lit = [panel for panel, color in self.panels.items() if color == WHITE]
        if not lit:
            return ""
        min_x = min(x for x, _ in lit)
        max_x = max(x for x, _ in lit)
        min_y = min(y for _, y in lit)
        max_y = max(y for _, y in lit)
        rows = []
        for y in range(min_y, max_y + 1):
            row = "".join(white if self.color_at((x, y)) == WHITE else black for x in range(min_x, max_x + 1))
            rows.append(row.rstrip())
        return "\n".join(rows)


__all__ = ["HullPaintingRobot", "BLACK", "WHITE", "TURN_LEFT", "TURN_RIGHT"]
