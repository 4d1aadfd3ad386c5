"""Infrastructure layer - file discovery, persistence queue, vault handle.

The domain never calls into this layer; services wire the two together
and hand infrastructure objects to the domain through its protocols.
"""
