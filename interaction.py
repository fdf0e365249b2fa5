# interaction.py
"""
Pointer hover handling.

The controller is a two-state machine: the pointer is either over the
surface or not. Only the edges between those states change the particles,
so a stream of repeated enter (or leave) signals applies its multiplier once.
"""
import logging
from enum import Enum
from typing import Dict

from particle import ParticleField


class HoverState(Enum):
    OUT = "out"
    IN = "in"


class InteractionController:
    """
    Broadcasts the hover multipliers to the particle field on hover edges.

    The multipliers are read from the settings mapping when the edge
    happens, so a host changing them mid-run is picked up on the next
    transition.
    """
    def __init__(self, field: ParticleField, settings: Dict[str, float]):
        self.field = field
        self.settings = settings
        self.state = HoverState.OUT

    @property
    def is_hovered(self) -> bool:
        return self.state is HoverState.IN

    def pointer_enter(self) -> bool:
        """Returns True if the signal moved the controller to IN."""
        if self.state is HoverState.IN:
            return False
        multiplier = self.settings['multiplier_in']
        logging.debug(f"Pointer in, changing multiplier to {multiplier}.")
        self.field.set_global_multiplier(multiplier)
        self.state = HoverState.IN
        return True

    def pointer_leave(self) -> bool:
        """Returns True if the signal moved the controller to OUT."""
        if self.state is HoverState.OUT:
            return False
        multiplier = self.settings['multiplier_out']
        logging.debug(f"Pointer out, changing multiplier to {multiplier}.")
        self.field.set_global_multiplier(multiplier)
        self.state = HoverState.OUT
        return True
