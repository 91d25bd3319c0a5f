"""
GraphQL documents for the FieldAgent file upload operations.

Values are always passed as variables, never interpolated into the text.
"""

CREATE_MULTIPART_FILE_UPLOAD = """
mutation CreateMultipartFileUpload(
  $byte_size: BigInt!
  $content_type: String!
  $filename: String!
  $file_upload_owner: FileUploadOwnerInput!
) {
  create_multipart_file_upload(
    byte_size: $byte_size
    content_type: $content_type
    filename: $filename
    file_upload_owner: $file_upload_owner
  ) {
    file_id
    owner_sentera_id
    s3_key
    upload_id
  }
}
"""

PREPARE_MULTIPART_FILE_UPLOAD_PART = """
mutation PrepareMultipartFileUploadPart(
  $part_number: Int!
  $s3_key: String!
  $upload_id: ID!
) {
  prepare_multipart_file_upload_part(
    part_number: $part_number
    s3_key: $s3_key
    upload_id: $upload_id
  ) {
    url
  }
}
"""

COMPLETE_MULTIPART_FILE_UPLOAD = """
mutation CompleteMultipartFileUpload(
  $parts: [FilePartInput!]!
  $s3_key: String!
  $upload_id: ID!
) {
  complete_multipart_file_upload(
    parts: $parts
    s3_key: $s3_key
    upload_id: $upload_id
  )
}
"""

ABORT_MULTIPART_FILE_UPLOAD = """
mutation AbortMultipartFileUpload(
  $s3_key: String!
  $upload_id: ID!
) {
  abort_multipart_file_upload(
    s3_key: $s3_key
    upload_id: $upload_id
  )
}
"""

CREATE_FILE_UPLOAD = """
mutation CreateFileUpload(
  $byte_size: BigInt!
  $checksum: String!
  $content_type: String!
  $filename: String!
) {
  create_file_upload(
    filename: $filename
    content_type: $content_type
    byte_size: $byte_size
    checksum: $checksum
  ) {
    id
    url
    headers
  }
}
"""
