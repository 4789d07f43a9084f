"""Fuel management platform: balances, coupons, vehicles, merchants and fleets."""
