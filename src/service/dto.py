"""
ORM -> response mappers
Shapes returned in the "data" member of the API envelope (camelCase keys)
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional

from src.models import Category, Message, Payment, Post, PricingTier, User


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def _number(value: Optional[Decimal]) -> Optional[float]:
    return float(value) if value is not None else None


def auth_user_dto(user: User) -> Dict[str, Any]:
    return {
        "id": user.id,
        "fullName": user.full_name,
        "emailAddress": user.email,
        "profilePictureUrl": user.profile_picture_url,
        "isEmailVerified": user.is_email_verified,
    }


def profile_dto(user: User) -> Dict[str, Any]:
    return {
        "id": user.id,
        "fullName": user.full_name,
        "emailAddress": user.email,
        "phoneNumber": user.phone_number,
        "paymentsNumber": user.payments_number,
        "profilePictureUrl": user.profile_picture_url,
        "location": user.location,
        "bio": user.bio,
        "oauthProvider": user.oauth_provider,
        "isEmailVerified": user.is_email_verified,
        "isPhoneVerified": user.is_phone_verified,
        "isAdmin": user.is_admin,
        "sellerRating": user.seller_rating,
        "totalRatings": user.total_ratings,
        "createdAt": _iso(user.created_at),
        "updatedAt": _iso(user.updated_at),
    }


def post_user_dto(user: User) -> Dict[str, Any]:
    return {
        "id": user.id,
        "fullName": user.full_name,
        "profilePictureUrl": user.profile_picture_url,
    }


def category_dto(category: Category, post_count: Optional[int] = None) -> Dict[str, Any]:
    data = {
        "id": category.id,
        "name": category.name,
        "description": category.description,
    }
    if post_count is not None:
        data["postCount"] = post_count
    return data


def post_dto(post: Post, is_liked: Optional[bool] = None) -> Dict[str, Any]:
    """Raw post shape, image URLs are blob paths until signed by the caller"""
    data = {
        "id": post.id,
        "title": post.title,
        "description": post.description,
        "price": _number(post.price),
        "location": post.location,
        "gpsLocation": post.gps_location,
        "brand": post.brand,
        "deliveryMethod": post.delivery_method,
        "contactNumber": post.contact_number,
        "emailAddress": post.email_address,
        "status": post.status,
        "tierId": post.tier_id,
        "user": post_user_dto(post.user),
        "category": category_dto(post.category),
        "images": [
            {"id": image.id, "imageUrl": image.image_url, "displayOrder": image.display_order}
            for image in post.images
        ],
        "likeCount": post.like_count,
        "viewCount": post.view_count,
        "scheduledPublishTime": _iso(post.scheduled_publish_time),
        "publishedAt": _iso(post.published_at),
        "expiresAt": _iso(post.expires_at),
        "createdAt": _iso(post.created_at),
        "updatedAt": _iso(post.updated_at),
    }
    if is_liked is not None:
        data["isLiked"] = is_liked
    return data


def message_dto(message: Message) -> Dict[str, Any]:
    return {
        "id": message.id,
        "senderId": message.sender_id,
        "recipientId": message.recipient_id,
        "postId": message.post_id,
        "parentMessageId": message.parent_message_id,
        "messageContent": message.content,
        "messageType": message.message_type,
        "attachmentUrl": message.attachment_url,
        "isReadByRecipient": message.is_read_by_recipient,
        "recipientReadAt": _iso(message.recipient_read_at),
        "isReadBySender": message.is_read_by_sender,
        "senderReadAt": _iso(message.sender_read_at),
        "isEdited": message.is_edited,
        "editedAt": _iso(message.edited_at),
        "isDeleted": message.is_deleted,
        "sender": post_user_dto(message.sender),
        "recipient": post_user_dto(message.recipient),
        "createdAt": _iso(message.created_at),
    }


def pricing_tier_dto(tier: PricingTier) -> Dict[str, Any]:
    return {
        "id": tier.id,
        "name": tier.name,
        "description": tier.description,
        "price": _number(tier.price),
        "durationDays": tier.visibility_days,
    }


def payment_dto(payment: Payment) -> Dict[str, Any]:
    return {
        "id": payment.id,
        "postId": payment.post_id,
        "userId": payment.user_id,
        "pricingTier": pricing_tier_dto(payment.tier),
        "amount": _number(payment.amount),
        "currency": payment.currency,
        "paymentMethod": payment.payment_method,
        "paymentStatus": payment.status,
        "transactionReference": payment.transaction_reference,
        "paymentDate": _iso(payment.confirmed_at),
        "createdAt": _iso(payment.created_at),
    }
