"""
clout_trust.grants — Trust-weighted grant funding.

Modules:
    allocation — Rank applications by propagated trust and recommend funding
                 with a per-applicant minimum grant floor.
    utility    — Piecewise-linear utilities and capital allocation strategies.
"""
