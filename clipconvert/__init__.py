# ClipConvert - upload a clip, transcode it to web-playable MP4 in the background, poll for the result

__version__ = "1.0.0"
