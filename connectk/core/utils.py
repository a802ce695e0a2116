import logging
import math

from connectk.config import CONFIG


def format_score(score):
    if math.isinf(score):
        return "win" if score > 0 else "loss"
    return f"{score:.0f}"


def format_info(d, score, nodes, elapsed, pv_moves):
    pv_str = " ".join(f"{m.col},{m.row}" for m in pv_moves)
    nps = int(nodes / elapsed) if elapsed > 0 else 0
    return (f"info depth {d} score {format_score(score)} nodes {nodes} "
            f"nps {nps} time {int(elapsed * 1000)} pv {pv_str}")


def setup_logging(level=None):
    logging.basicConfig(
        level=(level or CONFIG.log_level).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
