"""
Module: sentinel.backend.__init__
"""
