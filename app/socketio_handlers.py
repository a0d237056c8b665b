"""
SocketIO Event Handlers for Real-time Updates

Contest pages subscribe to a contest room on the /results namespace and get a
quarter_result event every time the score pipeline writes a result for that
contest.
"""

import logging

from flask import request
from flask_socketio import emit, join_room, leave_room

from app import socketio
from app.models import QuarterResult

logger = logging.getLogger(__name__)

RESULTS_NAMESPACE = "/results"

# Track connected clients and their subscriptions
connected_clients = {}


def contest_room(contest_id):
    return f"contest_{contest_id}"


@socketio.on("connect", namespace=RESULTS_NAMESPACE)
def on_connect():
    """Handle client connection to results namespace"""
    client_id = request.sid
    connected_clients[client_id] = {"subscriptions": set()}
    logger.info(f"Client connected to {RESULTS_NAMESPACE}: {client_id}")


@socketio.on("disconnect", namespace=RESULTS_NAMESPACE)
def on_disconnect():
    """Handle client disconnection from results namespace"""
    client_id = request.sid
    if connected_clients.pop(client_id, None) is not None:
        logger.info(f"Client disconnected from {RESULTS_NAMESPACE}: {client_id}")


@socketio.on("subscribe_contest", namespace=RESULTS_NAMESPACE)
def on_subscribe_contest(data):
    """Subscribe to result updates for a contest and receive current results"""
    client_id = request.sid
    contest_id = (data or {}).get("contest_id")

    if client_id not in connected_clients or not contest_id:
        return

    room_name = contest_room(contest_id)

    # Skip if already subscribed (avoid duplicate joins/emits)
    if room_name in connected_clients[client_id]["subscriptions"]:
        return

    connected_clients[client_id]["subscriptions"].add(room_name)
    join_room(room_name)

    results = QuarterResult.get_for_contest(contest_id)
    emit(
        "contest_results",
        {"contest_id": contest_id, "results": [r.to_public_dict() for r in results]},
    )

    logger.debug(f"Client {client_id} subscribed to contest {contest_id}")


@socketio.on("unsubscribe_contest", namespace=RESULTS_NAMESPACE)
def on_unsubscribe_contest(data):
    """Unsubscribe from result updates for a contest"""
    client_id = request.sid
    contest_id = (data or {}).get("contest_id")

    if client_id in connected_clients and contest_id:
        room_name = contest_room(contest_id)
        connected_clients[client_id]["subscriptions"].discard(room_name)
        leave_room(room_name)

        logger.debug(f"Client {client_id} unsubscribed from contest {contest_id}")


# Broadcast functions (called from the score pipeline)
def broadcast_quarter_result(result):
    """Broadcast a written quarter result to the contest room.

    Failures are logged and never reach the caller.
    """
    try:
        socketio.emit(
            "quarter_result",
            result.to_public_dict(),
            room=contest_room(result.contest_id),
            namespace=RESULTS_NAMESPACE,
        )
        logger.debug(
            f"Broadcasted {result.quarter} result for contest {result.contest_id}"
        )

    except Exception as e:
        logger.error(f"Error broadcasting quarter result: {e}")


def broadcast_contest_completed(contest):
    """Tell the contest room the game is over and the contest is closed"""
    try:
        socketio.emit(
            "contest_completed",
            {"contest_id": contest.id, "status": contest.status},
            room=contest_room(contest.id),
            namespace=RESULTS_NAMESPACE,
        )
        logger.debug(f"Broadcasted completion for contest {contest.id}")

    except Exception as e:
        logger.error(f"Error broadcasting contest completion: {e}")


def get_connection_stats():
    """Get connection statistics"""
    return {
        "total_connections": len(connected_clients),
        "total_subscriptions": sum(
            len(c["subscriptions"]) for c in connected_clients.values()
        ),
    }
