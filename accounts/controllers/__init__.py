"""
Request handlers.

Controllers parse and validate request bodies, call services and shape JSON
responses; routers only bind them to paths.
"""
