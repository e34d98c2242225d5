import logging

from gachasim.db.engine import get_sessionmaker, make_engine
from gachasim.draw import overall_aggregation
from gachasim.models import Base
from gachasim.reports import aggregation_rows
from gachasim.repositories import CategoryRepository, PrizeRepository, TargetRepository
from gachasim.store import GachaStore
from gachasim.workflows import add_numbered_prizes, create_gacha, pull_gacha


def main() -> None:
    """Reset the development database and fill it with a demo gacha."""
    logging.basicConfig(level=logging.DEBUG)
    engine = make_engine()

    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    Session = get_sessionmaker(engine)

    with Session.begin() as session:
        gacha = create_gacha(session, "配信プレゼント")

        categories = CategoryRepository(session, gacha)
        goods = categories.create("グッズ")
        signed = categories.create("サイン")

        prizes = PrizeRepository(session, gacha)
        prizes.create("サイン色紙", 1, limit=3, category_id=signed.id)
        prizes.create("アクリルスタンド", 10, limit=20, category_id=goods.id)
        prizes.create("ステッカー", 50, category_id=goods.id)
        add_numbered_prizes(session, gacha, "ブロマイド", 1, 5, 5, limit=10)

        targets = TargetRepository(session, gacha)
        viewers = [targets.create(name) for name in ("視聴者A", "視聴者B", "視聴者C")]
        for viewer in viewers:
            pull_gacha(session, gacha, 10, viewer.id)

        GachaStore(session).current_gacha_id = gacha.id

        for row in aggregation_rows(gacha, overall_aggregation(gacha)):
            print(f"{row.prize.name}: {row.count} ({row.probability}%)")

    engine.dispose()


if __name__ == "__main__":
    main()
