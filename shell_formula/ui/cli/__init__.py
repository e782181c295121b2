"""
CLI sub-command groups registered by ``shell_formula.main``.
"""
