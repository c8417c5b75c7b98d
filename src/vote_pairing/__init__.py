"""Vote Pairing.

Fair, collusion-resistant selection of candidate pairs for head-to-head
votes, with stateless signed tickets that bind each pair to its voter.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
