"""
Signup backends.

- `NamespaceProvisioner`: creates the caller's tenant namespace + admin role binding.
- `StaticSignupBackend`: provisioning disabled; everyone is reported as signed up.
"""
