"""
Building blocks shared by the engine: pointer primitives, matcher evaluation,
target resolution, operation staging and output encoding.
"""
