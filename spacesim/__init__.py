"""
Spacecraft Simulation Propagation Core
======================================
Numerical state propagation for a spacecraft engineering simulator.

Architecture:
    - Tableau-driven explicit Runge-Kutta framework (RK4, RKF45 with dense output)
    - Integrator manager selecting the method from configuration
    - Generic ODE engine with exact-arrival step plans
    - Relative orbit propagation (Hill integration or closed-form HCW STM)
      with LVLH-to-inertial conversion against a reference spacecraft
    - Analytic Kepler orbits for reference spacecraft and accuracy checks
"""

import logging

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())
