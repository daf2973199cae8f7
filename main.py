"""
ReplyDesk - Review Response Desk

CLI entry point for the review-response lifecycle.
"""

import argparse
import json
import logging
import sys

from src.desk import ReplyDesk
from src.errors import AlreadyPosted, ReplyDeskError
from src.models.audit import Caller
from src.models.response import Tone
from src.models.review import Restaurant
from src.utils.storage import ReviewStore
import config.settings as settings

logger = logging.getLogger(__name__)


def setup_logging(log_level: str = "INFO"):
    """Configure logging for the entire application."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format=settings.LOG_FORMAT,
        handlers=[
            logging.StreamHandler(sys.stdout),
            logging.FileHandler(settings.LOG_FILE)
        ]
    )


def build_desk(store_path: str, needs_generation: bool = False) -> ReplyDesk:
    """Create the desk, with a Gemini client only when generation is requested."""
    store = ReviewStore(store_path)

    completion_client = None
    if needs_generation:
        if not settings.GOOGLE_API_KEY:
            raise ReplyDeskError(
                "GOOGLE_API_KEY environment variable not set. "
                "Please set it before generating responses."
            )
        # Gemini SDK is only needed for generation
        from src.utils.completion import GeminiCompletionClient
        completion_client = GeminiCompletionClient(
            api_key=settings.GOOGLE_API_KEY,
            temperature=settings.LLM_TEMPERATURE,
            max_output_tokens=settings.GENERATION_MAX_OUTPUT_TOKENS
        )

    return ReplyDesk(store=store, completion_client=completion_client)


def _print_json(payload) -> None:
    print(json.dumps(payload, indent=2))


def cmd_import(desk: ReplyDesk, args) -> None:
    """Load a JSON export of restaurants and already-ingested reviews."""
    with open(args.file, 'r') as f:
        payload = json.load(f)

    for data in payload.get("restaurants", []):
        restaurant = Restaurant.from_dict(data)
        if desk.store.find_restaurant(restaurant.restaurant_id):
            continue
        desk.store.add_restaurant(
            name=restaurant.name,
            address=restaurant.address,
            external_id=restaurant.external_id,
            owner_id=restaurant.owner_id,
            restaurant_id=restaurant.restaurant_id
        )

    for data in payload.get("templates", []):
        desk.store.create_template(
            title=data["title"],
            content=data["content"],
            tone=data.get("tone", Tone.PROFESSIONAL),
            category=data.get("category", "general"),
            variables=data.get("variables")
        )

    imported = desk.store.import_reviews(payload.get("reviews", []))
    print(f"Imported {len(imported)} reviews")


def cmd_reviews(desk: ReplyDesk, args) -> None:
    reviews = desk.list_reviews(
        restaurant_id=args.restaurant,
        filters={
            "search": args.search,
            "rating": args.rating,
            "sentiment": args.sentiment,
            "status": args.status,
            "date_range": args.date_range,
        }
    )
    for review in reviews:
        text = (review.text or "").replace("\n", " ")
        print(
            f"{review.review_id}  {review.rating}*  {review.status.value:<9}  "
            f"{review.sentiment.value:<8}  {review.author_name}: {text[:60]}"
        )
    print(f"\n{len(reviews)} reviews")


def cmd_status(desk: ReplyDesk, args) -> None:
    transition = desk.set_status(
        args.review_id, args.status, caller=Caller(args.user), reason=args.reason
    )
    if transition.changed:
        print(f"Review {args.review_id}: {transition.from_status.value} -> {transition.to_status.value}")
    else:
        print(f"Review {args.review_id} already {transition.to_status.value}")


def cmd_generate(desk: ReplyDesk, args) -> None:
    session = desk.open_draft(args.review_id)
    desk.generate_draft(
        session,
        tone=args.tone,
        custom_instructions=args.instructions,
        use_model_variant=args.advanced
    )

    print(session.content)
    print(f"\n[{session.character_count}/{settings.RESPONSE_CHARACTER_LIMIT} chars, {session.model}]")
    if session.is_over_limit:
        print("Warning: draft exceeds the posting limit and must be shortened before posting")

    if args.save:
        response = desk.save_draft(session, Caller(args.user))
        print(f"Saved draft {response.response_id}")


def cmd_respond(desk: ReplyDesk, args) -> None:
    if args.template:
        session = desk.open_draft(args.review_id, template_id=args.template)
        if args.content:
            session.edit(content=args.content)
        response = desk.save_draft(session, Caller(args.user))
    else:
        response = desk.respond_manually(
            args.review_id, Caller(args.user), content=args.content or "", tone=args.tone
        )
    print(f"Saved draft {response.response_id} ({response.character_count} chars)")


def cmd_post(desk: ReplyDesk, args) -> None:
    try:
        response = desk.post_response(args.response_id, Caller(args.user))
    except AlreadyPosted:
        print(f"Response {args.response_id} was already posted")
        return
    print(f"Posted response {response.response_id} for review {response.review_id}")


def cmd_responses(desk: ReplyDesk, args) -> None:
    _print_json([response.to_dict() for response in desk.responses_for(args.review_id)])


def cmd_analytics(desk: ReplyDesk, args) -> None:
    snapshot = desk.analytics(restaurant_id=args.restaurant, date_range=args.date_range)
    _print_json(snapshot.to_dict())

    if args.export:
        output_path = desk.export_analytics(
            restaurant_id=args.restaurant, date_range=args.date_range
        )
        print(f"Report: {output_path}")
        print(f"Metadata: {output_path.replace('.csv', '_metadata.json')}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="ReplyDesk - Review response lifecycle and analytics",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Load restaurants and reviews exported from the ingestion service
  python main.py import data/export.json

  # List pending negative reviews from the last week
  python main.py reviews --status pending --sentiment negative --date-range week

  # Draft an apologetic reply and save it
  python main.py --user u-42 generate <review-id> --tone apologetic --save

  # Post it
  python main.py --user u-42 post <response-id>

Note: Set GOOGLE_API_KEY environment variable before generating responses.
        """
    )

    parser.add_argument(
        "--store",
        default=str(settings.STORE_PATH),
        help=f"Path to the store JSON (default: {settings.STORE_PATH})"
    )
    parser.add_argument(
        "--user",
        default="cli",
        help="User id the operation is attributed to (default: cli)"
    )
    parser.add_argument(
        "--log-level",
        default=settings.LOG_LEVEL,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help=f"Logging level (default: {settings.LOG_LEVEL})"
    )

    tones = [t.value.lower() for t in Tone]
    date_ranges = ["all", "today", "week", "month", "quarter", "year"]
    subparsers = parser.add_subparsers(dest="command", required=True)

    p = subparsers.add_parser("import", help="Import restaurants, templates and reviews from JSON")
    p.add_argument("file", help="JSON file with restaurants/templates/reviews lists")
    p.set_defaults(handler=cmd_import)

    p = subparsers.add_parser("reviews", help="List reviews")
    p.add_argument("--restaurant", help="Restrict to one restaurant id")
    p.add_argument("--search", help="Substring of review text or author name")
    p.add_argument("--rating", help="Exact star rating (1-5)")
    p.add_argument("--sentiment", help="positive, negative or neutral")
    p.add_argument("--status", help="pending, responded or ignored")
    p.add_argument("--date-range", default="all", choices=date_ranges)
    p.set_defaults(handler=cmd_reviews)

    p = subparsers.add_parser("status", help="Manually override a review's status")
    p.add_argument("review_id")
    p.add_argument("status", help="pending, responded or ignored")
    p.add_argument("--reason", default="", help="Audit note")
    p.set_defaults(handler=cmd_status)

    p = subparsers.add_parser("generate", help="Generate a reply draft with Gemini")
    p.add_argument("review_id")
    p.add_argument("--tone", default="professional", choices=tones)
    p.add_argument("--instructions", help="Extra guidance for the model")
    p.add_argument("--advanced", action="store_true", help="Use the advanced model")
    p.add_argument("--save", action="store_true", help="Save the result as a draft")
    p.set_defaults(handler=cmd_generate, needs_generation=True)

    p = subparsers.add_parser("respond", help="Save a manually written or templated draft")
    p.add_argument("review_id")
    p.add_argument("--content", help="Reply text (overrides template content)")
    p.add_argument("--template", help="Template id to seed the draft from")
    p.add_argument("--tone", default="professional", choices=tones)
    p.set_defaults(handler=cmd_respond)

    p = subparsers.add_parser("post", help="Mark a response as posted")
    p.add_argument("response_id")
    p.set_defaults(handler=cmd_post)

    p = subparsers.add_parser("responses", help="List responses for a review")
    p.add_argument("review_id")
    p.set_defaults(handler=cmd_responses)

    p = subparsers.add_parser("analytics", help="Show analytics snapshot")
    p.add_argument("--restaurant", help="Restrict to one restaurant id")
    p.add_argument("--date-range", default="all", choices=date_ranges)
    p.add_argument("--export", action="store_true", help="Also write CSV report")
    p.set_defaults(handler=cmd_analytics)

    return parser


def main(argv=None):
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)

    setup_logging(args.log_level)

    try:
        desk = build_desk(args.store, needs_generation=getattr(args, "needs_generation", False))
        args.handler(desk, args)
        sys.exit(0)

    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        print("\nInterrupted")
        sys.exit(1)

    except ReplyDeskError as e:
        logger.error(f"{args.command} failed: {e}")
        print(f"\nError: {e}")
        sys.exit(1)

    except Exception as e:
        logger.error(f"{args.command} failed: {e}", exc_info=True)
        print(f"\nFailed: {e}")
        print(f"Check {settings.LOG_FILE} for details")
        sys.exit(1)


if __name__ == "__main__":
    main()
