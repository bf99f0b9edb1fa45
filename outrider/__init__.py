"""
Outrider — Copy opted-in Secrets from a Rancher management cluster to
every ready downstream cluster.
"""

__version__ = "0.3.0"
