"""
Overtime Runner - a timed side-scrolling runner.

Dodge obstacles and pick up moons, coffee, laptops and jasmine on the way
to the office, then keep going in overtime for as long as you can.
"""

__version__ = "0.1.0"
