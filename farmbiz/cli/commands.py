"""
CLI 명령어 처리 모듈

서브커맨드:
- serve: API 서버 실행 (uvicorn)
- check-config: 환경 설정 점검
- payout-date: 정산 예정일/금액 계산
- validate-cart: 장바구니 JSON 검증
"""

import argparse
import json
import sys
from datetime import datetime
from typing import List, Optional

from rich.console import Console
from rich.table import Table

from .. import __version__
from ..config.logging_config import setup_logging_from_settings
from ..config.settings import AppSettings, get_settings
from ..core.exceptions import FarmBizError
from ..domain.cart import CartValidator, summarize_cart
from ..domain.logic import calculate_settlement
from ..domain.models import CartItem

console = Console()
err_console = Console(stderr=True)


def _mask(value: str) -> str:
    if not value:
        return "[red]미설정[/red]"
    if len(value) <= 8:
        return "****"
    return f"{value[:4]}****{value[-4:]}"


def create_parser() -> argparse.ArgumentParser:
    """CLI 파서 생성"""
    parser = argparse.ArgumentParser(
        prog="farmbiz",
        description="Farm to Biz - 농수산물 B2B 마켓플레이스 비즈니스 코어",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
예시:
  # API 서버 실행
  %(prog)s serve --port 8000

  # 설정 점검
  %(prog)s check-config

  # 정산 예정일 계산 (결제일 기준 D+7 영업일)
  %(prog)s payout-date --date 2025-01-03 --amount 100000

  # 장바구니 검증
  %(prog)s validate-cart --input cart.json
"""
    )
    parser.add_argument(
        "--env-file",
        default=None,
        help=".env 파일 경로"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )

    subparsers = parser.add_subparsers(dest="command", help="사용 가능한 명령어")

    # serve
    serve_parser = subparsers.add_parser("serve", help="API 서버 실행")
    serve_parser.add_argument("--host", default="0.0.0.0", help="바인드 주소 (기본: 0.0.0.0)")
    serve_parser.add_argument("--port", type=int, default=8000, help="포트 (기본: 8000)")

    # check-config
    subparsers.add_parser("check-config", help="환경 설정 점검")

    # payout-date
    payout_parser = subparsers.add_parser("payout-date", help="정산 예정일/금액 계산")
    payout_parser.add_argument("--date", type=str, help="결제일 YYYY-MM-DD (기본: 오늘)")
    payout_parser.add_argument("--amount", type=int, default=0, help="주문 금액 (원)")
    payout_parser.add_argument("--days", type=int, default=None, help="영업일 수 (기본: 설정값)")
    payout_parser.add_argument("--fee-rate", type=float, default=None, help="수수료율 (기본: 설정값)")

    # validate-cart
    cart_parser = subparsers.add_parser("validate-cart", help="장바구니 JSON 검증")
    cart_parser.add_argument("--input", type=str, required=True, help="장바구니 아이템 JSON 파일")

    return parser


def cmd_serve(args, settings: AppSettings) -> int:
    """API 서버 실행"""
    import uvicorn

    from ..server.app import create_app

    problems = settings.validate()
    for problem in problems:
        err_console.print(f"⚠️  {problem}", style="yellow")

    app = create_app(settings)
    uvicorn.run(app, host=args.host, port=args.port, log_level=settings.log_level.lower())
    return 0


def cmd_check_config(args, settings: AppSettings) -> int:
    """설정 점검"""
    table = Table(title="Farm to Biz 설정")
    table.add_column("항목")
    table.add_column("값")

    table.add_row("SUPABASE_URL", settings.supabase_url or "[red]미설정[/red]")
    table.add_row("SUPABASE_SERVICE_ROLE_KEY", _mask(settings.supabase_key))
    table.add_row("GEMINI_API_KEY", _mask(settings.gemini_api_key))
    table.add_row("GEMINI_MODEL_NAME", settings.gemini_model)
    table.add_row("TOSS_SECRET_KEY", _mask(settings.toss_secret_key))
    table.add_row("PLATFORM_FEE_RATE", f"{settings.platform_fee_rate:.2%}")
    table.add_row("PAYOUT_BUSINESS_DAYS", str(settings.payout_business_days))
    table.add_row("PAYMENT_TIMEOUT_SECONDS", str(settings.payment_timeout_seconds))
    table.add_row("AI_TIMEOUT_SECONDS", str(settings.ai_timeout_seconds))
    console.print(table)

    problems = settings.validate()
    if problems:
        for problem in problems:
            err_console.print(f"❌ {problem}", style="red")
        return 1

    console.print("✅ 설정 점검 통과", style="green")
    return 0


def cmd_payout_date(args, settings: AppSettings) -> int:
    """정산 예정일 계산"""
    try:
        start = datetime.strptime(args.date, "%Y-%m-%d") if args.date else datetime.now()
    except ValueError:
        err_console.print(f"❌ 날짜 형식이 올바르지 않습니다: {args.date} (YYYY-MM-DD)", style="red")
        return 1

    days = settings.payout_business_days if args.days is None else args.days
    fee_rate = settings.platform_fee_rate if args.fee_rate is None else args.fee_rate

    try:
        result = calculate_settlement(args.amount, fee_rate, days, start)
    except FarmBizError as e:
        err_console.print(f"❌ {e.user_message}", style="red")
        return 1

    console.print(f"  결제일: {start.strftime('%Y-%m-%d (%a)')}")
    console.print(f"  정산 예정일 (D+{days} 영업일): [bold]{result.scheduled_payout_at.strftime('%Y-%m-%d (%a)')}[/bold]")
    if args.amount:
        console.print(f"  주문 금액: {result.order_amount:,}원")
        console.print(f"  플랫폼 수수료 ({fee_rate:.0%}): {result.platform_fee:,}원")
        console.print(f"  도매점 정산액: [bold]{result.wholesaler_amount:,}원[/bold]")
    return 0


def cmd_validate_cart(args, settings: AppSettings) -> int:
    """장바구니 검증"""
    try:
        with open(args.input, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except FileNotFoundError:
        err_console.print(f"❌ 파일을 찾을 수 없습니다: {args.input}", style="red")
        return 1
    except json.JSONDecodeError as e:
        err_console.print(f"❌ JSON 파싱 실패: {e}", style="red")
        return 1

    raw_items = raw.get("items", []) if isinstance(raw, dict) else raw
    try:
        items = [CartItem.from_dict(i) for i in raw_items]
    except (KeyError, TypeError, ValueError) as e:
        err_console.print(f"❌ 장바구니 형식이 올바르지 않습니다: {e}", style="red")
        return 1

    result = CartValidator().validate(items)

    if result.is_valid:
        summary = summarize_cart(items)
        console.print(f"✅ 주문 가능 ({summary.item_count}개 상품)", style="green")
        console.print(f"  상품 금액: {summary.total_product_price:,}원")
        console.print(f"  배송비: {summary.total_shipping_fee:,}원")
        console.print(f"  합계: [bold]{summary.total_price:,}원[/bold]")
        return 0

    table = Table(title="장바구니 검증 오류")
    table.add_column("코드")
    table.add_column("상품")
    table.add_column("메시지")
    for error in result.errors:
        table.add_row(error.code.value, error.product_name or error.product_id or "-", error.message)
    console.print(table)
    return 1


COMMANDS = {
    "serve": cmd_serve,
    "check-config": cmd_check_config,
    "payout-date": cmd_payout_date,
    "validate-cart": cmd_validate_cart,
}


def run_cli(argv: Optional[List[str]] = None) -> int:
    """CLI 실행"""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    settings = AppSettings.from_env(args.env_file) if args.env_file else get_settings()
    setup_logging_from_settings(settings)
    return COMMANDS[args.command](args, settings)


def main():
    sys.exit(run_cli())


if __name__ == "__main__":
    main()
