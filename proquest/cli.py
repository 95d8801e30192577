"""
ProQuest CLI - Command-line interface for the engine.

Usage:
    proquest add <text> [--priority low|medium|high]   Add a task
    proquest list                                       List tasks
    proquest play <task_id> [--game grid|matching]      Win a game to complete a task
    proquest uncomplete <task_id>                       Reverse a completion
    proquest delete <task_id>                           Delete a task
    proquest progress                                   Show xp, level, achievements
    proquest games                                      List available games
    proquest serve [--host] [--port]                    Run the HTTP API

Progress is stored per --user under --data-dir.
"""

import argparse
import sys
import time

from . import config


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="ProQuest - Complete tasks by winning mini-games",
        prog="proquest",
    )
    parser.add_argument("--user", default="local", help="User key the progress belongs to")
    parser.add_argument("--data-dir", default=str(config.PROQUEST_DATA_DIR), help="Progress directory")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log engine events")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    add_parser = subparsers.add_parser("add", help="Add a task")
    add_parser.add_argument("text", help="Task text")
    add_parser.add_argument("--priority", "-p", default="medium", choices=["low", "medium", "high"])

    subparsers.add_parser("list", help="List tasks")

    play_parser = subparsers.add_parser("play", help="Play a game to complete a task")
    play_parser.add_argument("task_id", help="Task to complete")
    play_parser.add_argument("--game", "-g", default="grid", help="Game variant")
    play_parser.add_argument("--difficulty", "-d", default="medium", choices=["easy", "medium", "hard"])

    uncomplete_parser = subparsers.add_parser("uncomplete", help="Reverse a completion")
    uncomplete_parser.add_argument("task_id")

    delete_parser = subparsers.add_parser("delete", help="Delete a task")
    delete_parser.add_argument("task_id")

    subparsers.add_parser("progress", help="Show progress")
    subparsers.add_parser("games", help="List available games")

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)

    args = parser.parse_args(argv)
    config.configure_logging("INFO" if args.verbose else "WARNING")

    commands = {
        "add": cmd_add,
        "list": cmd_list,
        "play": cmd_play,
        "uncomplete": cmd_uncomplete,
        "delete": cmd_delete,
        "progress": cmd_progress,
        "games": cmd_games,
        "serve": cmd_serve,
    }
    command = commands.get(args.command)
    if command is None:
        parser.print_help()
        sys.exit(1)

    from .progression.errors import NoOpError, ProgressionError

    try:
        command(args)
    except NoOpError as e:
        print(f"Nothing to do: {e}")
    except ProgressionError as e:
        print(f"Error: {e}")
        sys.exit(1)


def _open_session(args, scheduler_factory=None):
    from .session import JsonFileSessionStore, SessionManager

    manager = SessionManager(
        store=JsonFileSessionStore(args.data_dir),
        scheduler_factory=scheduler_factory,
    )
    return manager, manager.login(args.user, create=True)


def cmd_add(args):
    """Add a task."""
    _, session = _open_session(args)
    task = session.engine.add_task(args.text, args.priority)
    print(f"Added {task.task_id}: {task.text} ({task.priority.value}, {task.xp} xp)")


def cmd_list(args):
    """List tasks."""
    _, session = _open_session(args)
    tasks = session.progress.tasks
    if not tasks:
        print("No tasks yet. Add one with: proquest add \"...\"")
        return
    for task in tasks:
        mark = "x" if task.completed else " "
        print(f"[{mark}] {task.task_id}  {task.text}  ({task.priority.value}, {task.xp} xp)")


def cmd_uncomplete(args):
    """Reverse a completion."""
    _, session = _open_session(args)
    task = session.engine.uncomplete(args.task_id)
    print(f"Reopened {task.task_id}: -{task.xp} xp")
    _print_summary(session.progress)


def cmd_delete(args):
    """Delete a task."""
    _, session = _open_session(args)
    task = session.engine.delete_task(args.task_id)
    print(f"Deleted {task.task_id}: {task.text}")
    _print_summary(session.progress)


def cmd_progress(args):
    """Show progress."""
    _, session = _open_session(args)
    progress = session.progress
    stats = session.engine.stats()

    _print_summary(progress)
    print(f"Streak: {progress.streak} day(s)")
    print(f"Completed today: {progress.tasks_completed_today}")
    print(f"Games won: {progress.games_won}")
    print(f"Tasks: {stats['completed_tasks']}/{stats['total_tasks']} completed")

    print("\nAchievements:")
    for achievement in progress.achievements:
        mark = "*" if achievement.unlocked else "-"
        print(f"  {mark} {achievement.name}: {achievement.description}")

    for game, scores in progress.best_scores.items():
        print(f"\nBest scores ({game}):")
        for difficulty, score in scores.items():
            print(f"  {difficulty}: {score['time']}s, {score['moves']} moves")


def cmd_games(args):
    """List available games."""
    from .games import GameRegistry

    for variant in GameRegistry.with_defaults().list_variants():
        print(f"{variant.name:10} {variant.title} - {variant.description}")


def cmd_play(args):
    """Play a game in the terminal to complete a task."""
    from .games import HeuristicGridGame, ManualScheduler, Outcome, TimedMatchingGame

    manager, session = _open_session(args, scheduler_factory=ManualScheduler)
    engine = session.engine
    task = engine.progress.get_task(args.task_id)

    game = engine.request_completion(args.task_id, variant=args.game, difficulty=args.difficulty)
    print(f"Win to complete: {task.text}")

    try:
        if isinstance(game, HeuristicGridGame):
            _play_grid(game, engine.scheduler)
        elif isinstance(game, TimedMatchingGame):
            _play_matching(game, engine.scheduler)
        else:
            print(f"The {args.game} game cannot be played in the terminal")
    except (KeyboardInterrupt, EOFError):
        print()

    if game.outcome is Outcome.WIN:
        print(f"\nYou won! Task completed (+{task.xp} xp)")
        for achievement_id in engine.last_unlocked:
            print(f"Achievement unlocked: {engine.progress.get_achievement(achievement_id).name}")
        _print_summary(engine.progress)
    elif game.outcome is Outcome.NOT_WIN:
        print("\nNot this time. The task stays open; play again to retry.")
    else:
        print("Challenge abandoned.")

    manager.logout(args.user)


def _play_grid(game, scheduler):
    while game.active:
        print()
        print(game.render())
        answer = input("Your move (0-8, q to quit): ").strip().lower()
        if answer == "q":
            return
        if not answer.isdigit() or not game.play(int(answer)):
            print("That cell is not available")
            continue
        scheduler.run_pending()

    print()
    print(game.render())


def _play_matching(game, scheduler):
    last = time.monotonic()
    while game.active:
        print()
        print(_render_matching(game))
        answer = input("Flip a card (q to quit): ").strip().lower()

        now = time.monotonic()
        scheduler.advance(now - last)
        last = now

        if answer == "q" or not game.active:
            break
        if not answer.isdigit() or not game.flip(int(answer)):
            print("That card cannot be flipped")
            continue

        if game.awaiting_resolution:
            print(_render_matching(game))
            time.sleep(game.resolve_delay)
            scheduler.advance(game.resolve_delay)
            last = time.monotonic()

    if game.time_left == 0:
        print("Time is up!")
    elif game.elapsed is not None:
        print(f"All pairs found in {game.elapsed}s and {game.moves} moves")


def _render_matching(game) -> str:
    cells = []
    for cell in game.cells:
        label = cell.symbol if (cell.face_up or cell.matched) else "?"
        cells.append(f"{cell.cell_id:>2}:{label:<10}")
    rows = [" ".join(cells[i:i + 4]) for i in range(0, len(cells), 4)]
    header = f"Time left: {game.time_left}s  Moves: {game.moves}  Pairs: {game.matched_pairs}/{game.total_pairs}"
    return "\n".join([header, *rows])


def _print_summary(progress):
    from .progression.state import XP_PER_LEVEL

    print(
        f"Level {progress.level}  "
        f"XP {progress.xp_into_level}/{XP_PER_LEVEL}  "
        f"(total {progress.xp})"
    )


def cmd_serve(args):
    """Run the HTTP API."""
    import uvicorn
    from .api.app import create_app

    uvicorn.run(create_app(), host=args.host, port=args.port)


if __name__ == "__main__":
    main()
