"""
Factory Boy factories for chat models.

Provides realistic test data generation for:
- ChatRoom: Group rooms (private rooms go through RoomRepository)
- Membership: User membership in rooms
- Message: Text messages

Usage:
    from chat.tests.factories import ChatRoomFactory, MembershipFactory, MessageFactory

    # Create a group room with its creator as member
    room = GroupRoomFactory()

    # Create a message in a room
    message = MessageFactory(room=room, sender=room.created_by)
"""

import factory

from authentication.tests.factories import UserFactory
from chat.models import ChatRoom, Membership, Message


class ChatRoomFactory(factory.django.DjangoModelFactory):
    """
    Base factory for ChatRoom model.

    Creates a group room with no members. Use GroupRoomFactory to also
    add the creator as a member.
    """

    class Meta:
        model = ChatRoom

    name = factory.Sequence(lambda n: f"Group Chat {n}")
    is_private = False
    created_by = factory.SubFactory(UserFactory)


class MembershipFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Membership

    room = factory.SubFactory(ChatRoomFactory)
    user = factory.SubFactory(UserFactory)


class GroupRoomFactory(ChatRoomFactory):
    """
    Factory for group rooms with the creator as first member.

    Examples:
        room = GroupRoomFactory()
        room = GroupRoomFactory(members=[alice, bob])
    """

    class Meta:
        model = ChatRoom
        skip_postgeneration_save = True

    @factory.post_generation
    def members(self, create, extracted, **kwargs):
        if not create:
            return
        Membership.objects.create(room=self, user=self.created_by)
        for user in extracted or []:
            if user.id != self.created_by_id:
                Membership.objects.create(room=self, user=user)


class MessageFactory(factory.django.DjangoModelFactory):
    """Factory for Message model. The sender should be a room member."""

    class Meta:
        model = Message

    room = factory.SubFactory(ChatRoomFactory)
    sender = factory.SubFactory(UserFactory)
    content = factory.Faker("sentence")
