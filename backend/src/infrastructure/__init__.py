"""Infrastructure adapters (database repositories)"""
