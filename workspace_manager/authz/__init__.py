"""Authorization policy layer (env driven).

Admins control which capabilities a caller must hold in a tenant namespace before it is
listed as a workspace: the API group, the resources and the verbs.
"""
