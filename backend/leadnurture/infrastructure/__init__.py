"""Infraestrutura: banco, integrações externas e jobs."""
