"""Minimal UCI engine used by the integration tests.

Answers the handshake with a Stockfish-like option list, reports one
info line per MultiPV index for each depth and finishes with bestmove.
``go infinite`` reports depth 1 and then waits for ``stop``.
"""

import sys

OPTIONS = [
    "option name Debug Log File type string default",
    "option name Threads type spin default 1 min 1 max 512",
    "option name Hash type spin default 16 min 1 max 2048",
    "option name Clear Hash type button",
    "option name Ponder type check default false",
    "option name MultiPV type spin default 1 min 1 max 500",
    "option name Skill Level type spin default 20 min 0 max 20",
    "option name SyzygyPath type string default <empty>",
]
MOVES = ["e2e4", "d2d4", "g1f3", "c2c4"]


def say(line):
    sys.stdout.write(line + "\n")
    sys.stdout.flush()


def report(depth, multipv):
    for index in range(1, multipv + 1):
        move = MOVES[(index - 1) % len(MOVES)]
        say(
            f"info depth {depth} seldepth {depth + 2} multipv {index} "
            f"score cp {40 - 10 * index} nodes {1000 * depth} nps 100000 time {depth} "
            f"pv {move} e7e5"
        )


def main():
    say("fakefish test")
    multipv = 1
    searching = False
    for raw in sys.stdin:
        tokens = raw.split()
        if not tokens:
            continue
        command = tokens[0]
        if command == "uci":
            say("id name Fakefish")
            say("id author the Fakefish developers")
            say("")
            for line in OPTIONS:
                say(line)
            say("uciok")
        elif command == "isready":
            say("readyok")
        elif command == "setoption" and tokens[2:3] == ["MultiPV"]:
            multipv = int(tokens[-1])
        elif command == "go":
            say("info string searching")
            if tokens[1:2] == ["infinite"]:
                report(1, multipv)
                searching = True
                continue
            depth = int(tokens[2]) if tokens[1:2] == ["depth"] else 3
            for d in range(1, depth + 1):
                report(d, multipv)
            say("bestmove e2e4 ponder e7e5")
        elif command == "stop" and searching:
            searching = False
            say("bestmove e2e4 ponder e7e5")
        elif command == "quit":
            break


if __name__ == "__main__":
    main()
