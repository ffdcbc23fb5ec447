"""In-memory notice feed — records published notices for inspection."""

from checkout.notices.port import NoticeFeedPort, StatusNotice


class InMemoryNoticeFeed(NoticeFeedPort):
    def __init__(self):
        self.notices: list[StatusNotice] = []

    def publish(self, notice: StatusNotice) -> None:
        self.notices.append(notice)

    def for_order(self, order_id) -> list[StatusNotice]:
        return [n for n in self.notices if n.order_id == str(order_id)]

    def reset(self):
        self.notices.clear()
