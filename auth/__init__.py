"""auth/ -- Authentication and authorization package for userauth.

Layer rule: auth/ imports only stdlib, third-party libraries, and core/.
core/ never imports from auth/.
"""
