from models.schemas.common import BaseSchema, required_id


class VideoTargetSchema(BaseSchema):
    video_id = required_id("videoId")


class CommentTargetSchema(BaseSchema):
    comment_id = required_id("commentId")


class TweetTargetSchema(BaseSchema):
    tweet_id = required_id("tweetId")


class ChannelTargetSchema(BaseSchema):
    channel_id = required_id("channelId")
