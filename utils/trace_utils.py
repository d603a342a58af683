"""
This file includes some help functions for solver traces.

A trace is the sequence of events recorded by CdclSolver:
  * ("D", lit, level)  a decision, written "D <lit> L <level>",
  * ("A", lit, level)  an implied assignment, written "A <lit>",
  * ("BT", lit, level) a backjump to <level> asserting <lit>, written "BT <lit> L <level>".

The helpers below turn event lists into strings, cut a trace down to the
events that survive backtracking (the key trace) and pull the decisions
back out so that a run can be replayed with ReplayBranching.
"""
import re

from typing import List, Tuple


def convert_trace_to_str(events: List[Tuple[str, int, int]]) -> str:
    """
    Converts a list of tuples like:
        [('D', -1, 1), ('A', 9, 1), ('BT', 4, 0), ('A', 7, 0)]
    into a string like:
        "D -1 L 1 A 9 BT 4 L 0 A 7"
    """
    out_tokens = []
    for etype, val, lvl in events:
        if etype in ("D", "BT"):
            out_tokens.extend([etype, str(val), "L", str(lvl)])
        elif etype == "A":
            out_tokens.extend(["A", str(val)])
        else:
            raise ValueError(f"Unknown trace event type '{etype}'")
    return " ".join(out_tokens)


def extract_decisions(trace_string: str) -> List[int]:
    """
    Extracts the decision literals of a trace in order.

    Args:
        trace_string: A string of traces.

    Returns:
        A list of signed integers, one per 'D' event.
    """
    return [int(m) for m in re.findall(r'\bD\s+(-?\d+)', trace_string)]


def get_key_trace(trace: str) -> str:
    """
    Extract the key trace from the entire trace: every 'BT' to level b drops
    the events recorded above level b.

    Args:
        trace: A string represents the entire trace.

    Returns:
        str: The key trace as a single string.
    """
    tokens = trace.split()
    index = 0
    stack = []
    current_level = 0
    while index < len(tokens):
        token = tokens[index]
        if token in ('D', 'BT'):
            lit = tokens[index + 1]
            if index + 3 >= len(tokens) or tokens[index + 2] != 'L':
                raise ValueError(f"Expected 'L <level>' after {token} {lit}")
            level = int(tokens[index + 3])
            if token == 'BT':
                stack = [(lvl, s) for (lvl, s) in stack if lvl <= level]
            stack.append((level, [token, lit, 'L', str(level)]))
            current_level = level
            index += 4
        elif token == 'A':
            if index + 1 >= len(tokens):
                raise ValueError("Expected a literal after 'A'")
            stack.append((current_level, ['A', tokens[index + 1]]))
            index += 2
        else:
            raise ValueError(f"Unknown token '{token}'")

    final_trace = []
    for _, step in stack:
        final_trace.extend(step)
    return ' '.join(final_trace)
