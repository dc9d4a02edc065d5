"""Domain services: session registry, token gate, account operations"""
