"""catalog/ -- Movies, reviews, and the join that attaches one to the other.

Layer rule: catalog/ imports only stdlib, third-party libraries, core/, and
auth.models (for Principal). It does NOT import from api/.
"""
