"""Toreca Tracker — API routers."""

from src.api.routes import chart, cron, justtcg, links, overseas_prices, pos, public

ALL_ROUTERS = [
    chart.router,
    justtcg.router,
    overseas_prices.router,
    links.router,
    cron.router,
    public.router,
    pos.router,
]

__all__ = ["ALL_ROUTERS"]
