"""
clout_trust — Reputation scoring backbone for the Clout trust network.

Turns self-reported trust allocations between participants into global trust
scores with an EigenTrust-style damped fixed-point propagation, and reuses the
same propagation to rank and fund grant applications.

Components:
- Graph Normalizer           (clout_trust.graph.normalizer)
- Standard Propagation       (clout_trust.propagation.standard)
- Decoupled Propagation      (clout_trust.propagation.decoupled)
- Anchored Propagation       (clout_trust.propagation.anchored)
- Rank / Display Mapper      (clout_trust.ranking)
- Grant Allocation           (clout_trust.grants.allocation, clout_trust.grants.utility)

Every computation is a pure function of the graph snapshot it is given.
Persistence and scheduling belong to the caller.
"""

__version__ = "0.1.0"
