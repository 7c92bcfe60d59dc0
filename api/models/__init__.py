from models.driver import Driver
from models.route import Route
from models.order import Order
from models.simulation import Simulation

__all__ = ["Driver", "Route", "Order", "Simulation"]
